"""
Post generators.

A generator synthesizes posts before the blog is parsed. The executor
serializes each generated post into the source tree, so generated posts
are discovered by the blog parser exactly like hand-written ones.
"""

import abc
import json
import logging
import os
import re
from pathlib import PurePath
from typing import Any, Dict, Iterable, List, Mapping, Optional

import yaml

from .blog import Post
from .configuration import BlogConfiguration, GeneratorRequest
from .errors import BlogError, ErrorKind, LexicalPosition, Result, of_message, of_message_path, of_os_error
from .post_parser import serialize_post

Properties = Mapping[str, Any]


class Generator(abc.ABC):

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """The type name used in generator requests."""

    @property
    @abc.abstractmethod
    def description(self) -> str:
        """A short human-readable description."""

    @abc.abstractmethod
    def generate(self, config: BlogConfiguration, properties: Properties,
                 base_dir: Optional[str] = None) -> Result[Dict[PurePath, Post]]:
        """
        Produce posts keyed by their path relative to the source root.
        ``base_dir`` is the directory of the properties file, against which
        relative paths in ``properties`` are resolved.
        """


class GeneratorRegistry:
    """An explicit name to generator mapping, read-only once populated."""

    def __init__(self, generators: Iterable[Generator] = ()):
        self._generators: Dict[str, Generator] = {}
        for generator in generators:
            self.register(generator)

    def register(self, generator: Generator) -> None:
        if generator.name in self._generators:
            raise ValueError(f"Generator already registered: {generator.name}")
        self._generators[generator.name] = generator

    def resolve(self, name: str) -> Optional[Generator]:
        return self._generators.get(name)

    def available(self) -> List[Generator]:
        return [self._generators[name] for name in sorted(self._generators)]


PROPERTIES_SEPARATOR_RE = re.compile(r'\s*[=:]\s*|\s+')


def parse_properties_lines(lines: Iterable[str]) -> Dict[str, str]:
    """
    Parse Java-style ``key=value`` lines. ``#`` and ``!`` start comments,
    ``:`` or whitespace may separate the key from the value, and a
    trailing backslash continues a value on the next line.
    """
    data = {}
    pending = ''
    for line in lines:
        line = line.rstrip('\r\n').lstrip()
        if not pending and (not line or line[0] in '#!'):
            continue
        if line.endswith('\\') and not line.endswith('\\\\'):
            pending += line[:-1]
            continue
        line = pending + line
        pending = ''
        parts = PROPERTIES_SEPARATOR_RE.split(line, maxsplit=1)
        data[parts[0]] = parts[1] if len(parts) > 1 else ''
    if pending:
        parts = PROPERTIES_SEPARATOR_RE.split(pending, maxsplit=1)
        data[parts[0]] = parts[1] if len(parts) > 1 else ''
    return data


def load_properties(path) -> Result[Dict[str, Any]]:
    """
    Load a generator properties file, chosen by extension. ``.json`` files
    are read as JSON, ``.properties`` files as ``key=value`` lines and
    anything else as YAML.
    """
    file_ext = os.path.splitext(str(path))[1].lower()
    try:
        with open(path, 'r', encoding='utf-8') as f:
            if file_ext == '.json':
                data = json.load(f)
            elif file_ext == '.properties':
                data = parse_properties_lines(f)
            else:
                data = yaml.safe_load(f)
    except OSError as e:
        return Result.invalid([of_os_error(e, path)])
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        return Result.invalid([BlogError(
            f"Invalid properties file: {e}", LexicalPosition(0, 0, path), e, ErrorKind.SYNTAX)])

    if data is None:
        data = {}
    if not isinstance(data, dict):
        return Result.invalid([of_message_path(
            "Properties file must contain a mapping of keys to values", path)])
    return Result.valid({str(k): v for k, v in data.items()})


class GeneratorExecutor:
    """Runs every generator request of a configuration."""

    def __init__(self, generators: GeneratorRegistry):
        self.generators = generators
        self.logger = logging.getLogger('zeptoblog.GeneratorExecutor')

    def execute_all(self, config: BlogConfiguration) -> Result[None]:
        errors: List[BlogError] = []
        for name, request in config.generator_requests.items():
            self.logger.info(f"Running generator {name} ({request.generator_type})")
            errors.extend(self.execute(config, request))
        return Result.of(None, errors)

    def execute(self, config: BlogConfiguration, request: GeneratorRequest) -> List[BlogError]:
        self.logger.debug(f"looking up generator: {request.generator_type}")
        generator = self.generators.resolve(request.generator_type)
        if generator is None:
            return [of_message(f"No such generator: {request.generator_type}")]

        self.logger.debug(f"loading properties: {request.properties_path}")
        props = load_properties(request.properties_path)
        if not props.ok:
            return props.errors

        self.logger.debug(f"executing generator: {generator.name}")
        base_dir = os.path.dirname(os.path.abspath(request.properties_path))
        result = generator.generate(config, props.get(), base_dir)
        if not result.ok:
            return result.errors

        errors = []
        for path, post in result.get().items():
            errors.extend(self.write_post(config, path, post))
        return errors

    def write_post(self, config: BlogConfiguration, path: PurePath, post: Post) -> List[BlogError]:
        output = config.source_root / path
        self.logger.debug(f"writing {output}")
        try:
            os.makedirs(output.parent, exist_ok=True)
            with open(output, 'w', encoding='utf-8', newline='\n') as f:
                f.write(serialize_post(post))
        except OSError as e:
            return [of_os_error(e, output)]
        return []
