#!/usr/bin/env python3
"""
Command-line interface for zeptoblog - a minimalist static blog compiler.
"""

import os
import sys
import argparse
import logging
import time
from datetime import datetime
from typing import Iterable, List, Optional

from . import __version__
from .blog_parser import BlogParser
from .errors import BlogError
from .generators import GeneratorExecutor, GeneratorRegistry
from .formats import FormatRegistry
from .registries import default_format_registry, default_generator_registry
from .renderer import Renderer
from .settings import BlogSettings

LOG_LEVELS = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warning': logging.WARNING,
    'error': logging.ERROR,
}


def setup_logging(level: str = 'info', log_dir: Optional[str] = None) -> logging.Logger:
    """Set up logging configuration for the ``zeptoblog`` logger hierarchy."""
    logger = logging.getLogger('zeptoblog')
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(LOG_LEVELS[level])
    console_handler.setFormatter(logging.Formatter('%(message)s'))
    logger.addHandler(console_handler)

    # File handler for all logs
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        log_filename = datetime.now().strftime('zeptoblog_%Y-%m-%d_%H-%M-%S.log')
        file_handler = logging.FileHandler(os.path.join(log_dir, log_filename), encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        logger.addHandler(file_handler)

    return logger


def log_errors(logger: logging.Logger, errors: Iterable[BlogError]) -> None:
    for error in errors:
        logger.error(error.show())
        if error.cause is not None:
            logger.debug(f"caused by {type(error.cause).__name__}", exc_info=error.cause)


def compile_blog(config_path: Optional[str],
                 formats: Optional[FormatRegistry] = None,
                 generators: Optional[GeneratorRegistry] = None) -> bool:
    """
    Run the full pipeline: load configuration, execute generators, parse the
    blog, render it. Returns True when every stage succeeded.
    """
    logger = logging.getLogger('zeptoblog.Compiler')
    formats = formats or default_format_registry()
    generators = generators or default_generator_registry(formats)

    start_time = time.time()
    config = BlogSettings().load_configuration(config_path)
    if not config.ok:
        log_errors(logger, config.errors)
        return False
    config = config.get()

    executed = GeneratorExecutor(generators).execute_all(config)
    if not executed.ok:
        log_errors(logger, executed.errors)
        logger.error("Generators failed; no output was written")
        return False

    blog = BlogParser(formats).parse(config)
    if not blog.ok:
        log_errors(logger, blog.errors)
        logger.error("Blog could not be parsed; no output was written")
        return False

    rendered = Renderer(formats).render(blog.get(), config)
    if not rendered.ok:
        log_errors(logger, rendered.errors)
        return False

    logger.info(f"Blog compiled to {config.output_root} in {time.time() - start_time:.3f} seconds.")
    return True


def list_providers(providers) -> None:
    for provider in providers:
        print('%-32s : %s' % (provider.name, provider.description))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='zeptoblog', description='zeptoblog - Minimalist Blog Compiler')
    parser.add_argument('--verbose', type=str, choices=list(LOG_LEVELS), default='info',
                        help='Logging level for console output')
    parser.add_argument('--log-dir', type=str,
                        help='Directory to write a timestamped debug log file into')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    commands = parser.add_subparsers(dest='command', metavar='command')
    commands.required = True

    compile_cmd = commands.add_parser('compile', help='Compile a blog')
    compile_cmd.add_argument('--config', type=str,
                             help='Configuration file (default: zeptoblog.yml in the current directory)')
    commands.add_parser('formats', help='List the available post formats')
    commands.add_parser('generators', help='List the available generators')
    init_cmd = commands.add_parser('init', help='Create a sample configuration file')
    init_cmd.add_argument('--format', type=str, choices=['yml', 'yaml', 'json'], default='yml',
                          help='Format of the configuration file')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    logger = setup_logging(args.verbose, args.log_dir)

    if args.command == 'formats':
        list_providers(default_format_registry().available())
        return 0

    if args.command == 'generators':
        list_providers(default_generator_registry().available())
        return 0

    if args.command == 'init':
        try:
            config_path = BlogSettings().create_sample_config(args.format)
        except (IOError, OSError) as e:
            logger.error(f"Error: {e}")
            return 1
        print(f"Created sample configuration file: {config_path}")
        return 0

    return 0 if compile_blog(args.config) else 1


if __name__ == '__main__':
    sys.exit(main())
