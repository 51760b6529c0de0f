"""Tests for the command-line interface."""

import logging
import os
import sys
from pathlib import Path

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from zeptoblog_pkg import __version__
from zeptoblog_pkg.cli import main, setup_logging


@pytest.fixture(autouse=True)
def reset_logging():
    """Detach the handlers installed by the CLI after each test."""
    yield
    logger = logging.getLogger('zeptoblog')
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def project(temp_dir):
    """A small blog project with a configuration file and two posts."""
    root = Path(temp_dir)
    (root / 'source').mkdir()
    (root / 'source' / 'one.zbp').write_text(
        'title One\ndate 2017-01-01T00:00:00+0000\n\nFirst post.\n')
    (root / 'source' / 'two.zbp').write_text(
        'title Two\ndate 2017-02-01T00:00:00+0000\n\nSecond post.\n')
    config = root / 'zeptoblog.yml'
    config.write_text(
        'title: CLI Blog\n'
        + 'author: Someone\n'
        + 'site_uri: https://blog.example.com\n'
        + 'source_root: source\n'
        + 'output_root: output\n'
        + 'format_default: com.io7m.zeptoblog.commonmark\n')
    return root


class TestCLI:
    """Test cases for the zeptoblog command."""

    def test_formats(self, capsys):
        """Test that the formats command lists every registered format."""
        assert main(['formats']) == 0

        lines = capsys.readouterr().out.splitlines()
        assert lines == [
            '%-32s : %s' % ('com.io7m.zeptoblog.commonmark', 'http://commonmark.org 0.27'),
            '%-32s : %s' % ('com.io7m.zeptoblog.xhtml', 'XHTML 1.0 Strict'),
        ]

    def test_generators(self, capsys):
        """Test that the generators command lists the glossary generator."""
        assert main(['generators']) == 0

        assert capsys.readouterr().out.startswith('com.io7m.zeptoblog.glossary')

    def test_version(self, capsys):
        """Test the --version flag."""
        with pytest.raises(SystemExit) as exc_info:
            main(['--version'])

        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_command_required(self):
        """Test that running without a command is a usage error."""
        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 2

    def test_init(self, temp_dir, monkeypatch, capsys):
        """Test that init writes a sample configuration in the current directory."""
        monkeypatch.chdir(temp_dir)

        assert main(['init', '--format', 'json']) == 0

        assert os.path.isfile(os.path.join(temp_dir, 'zeptoblog.json'))
        assert 'Created sample configuration file' in capsys.readouterr().out

    def test_compile(self, project):
        """Test compiling a project from its configuration file."""
        assert main(['compile', '--config', str(project / 'zeptoblog.yml')]) == 0

        output = project / 'output'
        assert (output / '1.xhtml').is_file()
        assert (output / 'one.xhtml').is_file()
        assert (output / 'two.xhtml').is_file()
        assert (output / 'yearly.xhtml').is_file()
        assert (output / 'blog.atom').is_file()

    def test_compile_finds_config_in_cwd(self, project, monkeypatch):
        """Test that compile falls back to a configuration in the current directory."""
        monkeypatch.chdir(project)

        assert main(['compile']) == 0
        assert (project / 'output' / '1.xhtml').is_file()

    def test_compile_parse_errors(self, project, capsys):
        """Test that parse errors are logged and nothing is rendered."""
        (project / 'source' / 'bad.zbp').write_text('no title here\n\n')

        assert main(['compile', '--config', str(project / 'zeptoblog.yml')]) == 1

        err = capsys.readouterr().err
        assert 'bad.zbp:1:0: Unrecognized command' in err
        assert 'Title not specified' in err
        assert not (project / 'output').exists()

    def test_compile_invalid_config(self, temp_dir, capsys):
        """Test that configuration errors give a failing exit status."""
        config = Path(temp_dir) / 'zeptoblog.yml'
        config.write_text('title: Only a title\n')

        assert main(['compile', '--config', str(config)]) == 1
        assert 'Missing required configuration key: author' in capsys.readouterr().err

    def test_compile_generator_failure(self, project, capsys):
        """Test that a failing generator stops the pipeline."""
        config = project / 'zeptoblog.yml'
        config.write_text(config.read_text() + (
            'generators:\n'
            '  broken:\n'
            '    type: com.example.missing\n'
            '    file: missing.yml\n'))

        assert main(['compile', '--config', str(config)]) == 1
        assert 'No such generator: com.example.missing' in capsys.readouterr().err
        assert not (project / 'output').exists()

    def test_log_dir(self, temp_dir):
        """Test that a timestamped log file is created in the log directory."""
        log_dir = os.path.join(temp_dir, 'logs')

        logger = setup_logging('debug', log_dir)
        logger.getChild('Test').debug('hello')

        files = os.listdir(log_dir)
        assert len(files) == 1
        assert files[0].startswith('zeptoblog_') and files[0].endswith('.log')
        for handler in logger.handlers:
            handler.flush()
        with open(os.path.join(log_dir, files[0]), encoding='utf-8') as f:
            assert 'zeptoblog.Test - DEBUG - hello' in f.read()
