#!/usr/bin/env python3
"""
tinysh Unit Tests

Tests for parsing, expansion, configuration, logging, exceptions and
pipe bookkeeping. Nothing here starts an external process.

Run with: python -m pytest tests/unit_tests.py -v
Or: python tests/unit_tests.py

Version: 1.0.0
"""

import json
import os
import sys
import tempfile
import unittest
from unittest import mock

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


class TestExceptions(unittest.TestCase):
    """Test the exception hierarchy."""

    def test_shell_exception(self):
        """Test ShellException formatting."""
        from tinysh.exceptions import ShellException

        exc = ShellException("Test error", prefix="op", error_code=1234)

        self.assertEqual(exc.message, "Test error")
        self.assertEqual(exc.error_code, 1234)
        self.assertIn("1234", str(exc))
        self.assertEqual(exc.report(), "op: Test error")

    def test_builtin_error_prefix(self):
        """A builtin error is reported under the builtin's name."""
        from tinysh.exceptions import BuiltinError, ShellException

        exc = BuiltinError("kill", "invalid pid: abc")

        self.assertIsInstance(exc, ShellException)
        self.assertEqual(exc.error_code, 3000)
        self.assertEqual(exc.report(), "kill: invalid pid: abc")

    def test_process_exceptions(self):
        """Test process exceptions."""
        from tinysh.exceptions import (
            CommandNotFoundError,
            ProcessCreationError,
            ProcessException,
        )

        exc = CommandNotFoundError("nosuch", argv=["nosuch", "-x"])
        self.assertIsInstance(exc, ProcessException)
        self.assertEqual(exc.report(), "nosuch: command not found")
        self.assertEqual(exc.context["argv"], ["nosuch", "-x"])

        exc = ProcessCreationError("Permission denied", command="./run", errno=13)
        self.assertEqual(exc.error_code, 2001)
        self.assertEqual(exc.errno, 13)
        self.assertEqual(exc.report(), "./run: Permission denied")

    def test_io_exceptions(self):
        """Test redirect and pipe exceptions."""
        from tinysh.exceptions import IOException, PipeError, RedirectError

        exc = RedirectError("cannot open input file in.txt: No such file", path="in.txt")
        self.assertIsInstance(exc, IOException)
        self.assertEqual(exc.context["direction"], "input")
        self.assertTrue(exc.report().startswith("redirect: "))

        exc = PipeError("Too many open files", pipe_index=2)
        self.assertEqual(exc.pipe_index, 2)
        self.assertEqual(exc.report(), "pipe: Too many open files")


class TestLogger(unittest.TestCase):
    """Test the logging system."""

    def tearDown(self):
        from tinysh.logger import Logger
        Logger.shutdown()

    def test_logger_creation(self):
        """Test logger creation and singleton."""
        from tinysh.logger import Logger

        log1 = Logger('test1')
        log2 = Logger('test1')

        self.assertIs(log1, log2)
        self.assertIsNot(log1, Logger('test2'))

    def test_log_levels(self):
        """Test log level ordering and lookup."""
        from tinysh.logger import LogLevel

        self.assertTrue(LogLevel.ERROR > LogLevel.INFO)
        self.assertEqual(LogLevel.from_name("debug"), LogLevel.DEBUG)
        self.assertEqual(LogLevel.from_name("nonsense"), LogLevel.WARNING)

    def test_session_buffer(self):
        """Records land in the session buffer once initialized."""
        from tinysh.logger import Logger, LogLevel, get_logger

        Logger.initialize(level=LogLevel.DEBUG)
        get_logger('launcher').debug("Started process", pid=7, context={'argv': ['ls']})

        logs = Logger.get_session_logs(subsystem='launcher')
        self.assertEqual(len(logs), 1)
        self.assertEqual(logs[0]['pid'], 7)
        self.assertEqual(logs[0]['message'], "Started process")

    def test_no_logs_before_initialize(self):
        """Without initialize() there is no session buffer."""
        from tinysh.logger import Logger, get_logger

        get_logger('shell').error("ignored")
        self.assertEqual(Logger.get_session_logs(), [])

    def test_formatter(self):
        """Test the formatter layout."""
        import logging
        from tinysh.logger import LogFormatter

        record = logging.LogRecord('tinysh.shell', logging.ERROR, __file__, 1, "boom", None, None)
        record.subsystem = 'shell'
        record.pid = 42
        record.context = {'command': 'ls'}

        line = LogFormatter(use_colors=False).format(record)

        self.assertIn("ERROR", line)
        self.assertIn("[shell]", line)
        self.assertIn("(pid=42)", line)
        self.assertIn("{command=ls}", line)


class TestConfig(unittest.TestCase):
    """Test the configuration system."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)

    def tearDown(self):
        from tinysh.core.config_loader import ConfigLoader
        ConfigLoader().reset()

    def _write(self, data) -> str:
        path = os.path.join(self.tmpdir.name, 'tinysh.json')
        with open(path, 'w', encoding='utf-8') as f:
            if isinstance(data, str):
                f.write(data)
            else:
                json.dump(data, f)
        return path

    def test_default_config(self):
        """Test default configuration values."""
        from tinysh.core.config_loader import Config

        config = Config()

        self.assertEqual(config.shell.prompt, "tinysh> ")
        self.assertFalse(config.shell.conditional_gating)
        self.assertEqual(config.process.ps_command, ["ps", "aux"])
        self.assertEqual(config.process.file_mode, 0o644)

    def test_load(self):
        """Test configuration loading."""
        from tinysh.core.config_loader import ConfigLoader, get_config

        path = self._write({
            'shell': {'prompt': '$ ', 'conditional_gating': True},
            'process': {'kill_signal': 'SIGKILL'},
        })

        config = ConfigLoader().load(path)

        self.assertEqual(config.shell.prompt, '$ ')
        self.assertTrue(config.shell.conditional_gating)
        self.assertEqual(config.shell.farewell_message, "Goodbye!")
        self.assertEqual(config.process.kill_signal, 'SIGKILL')
        self.assertIs(get_config(), config)

    def test_load_errors(self):
        """Bad files raise ConfigError."""
        from tinysh.core.config_loader import ConfigLoader
        from tinysh.exceptions import ConfigError

        loader = ConfigLoader()

        with self.assertRaises(ConfigError):
            loader.load(os.path.join(self.tmpdir.name, 'missing.json'))
        with self.assertRaises(ConfigError):
            loader.load(self._write("{not json"))
        with self.assertRaises(ConfigError):
            loader.load(self._write({'kernel': {}}))
        with self.assertRaises(ConfigError):
            loader.load(self._write({'shell': 'prompt'}))
        with self.assertRaises(ConfigError):
            loader.load(self._write({'process': {'ps_command': []}}))

    def test_flags_must_be_bool(self):
        """Switches accept only JSON true/false."""
        from tinysh.core.config_loader import ConfigLoader
        from tinysh.exceptions import ConfigError

        loader = ConfigLoader()

        with self.assertRaises(ConfigError):
            loader.load(self._write({'shell': {'conditional_gating': "false"}}))
        with self.assertRaises(ConfigError):
            loader.load(self._write({'logging': {'console_output': 1}}))

        config = loader.load(self._write({'logging': {'console_output': False}}))
        self.assertFalse(config.logging.console_output)

    def test_load_from_env(self):
        """TINYSH_CONFIG names the file; unset keeps defaults."""
        from tinysh.core.config_loader import ConfigLoader, CONFIG_ENV_VAR

        path = self._write({'logging': {'level': 'DEBUG'}})

        with mock.patch.dict(os.environ, {CONFIG_ENV_VAR: path}):
            config = ConfigLoader().load_from_env()
        self.assertEqual(config.logging.level, 'DEBUG')

        ConfigLoader().reset()
        with mock.patch.dict(os.environ, {}, clear=True):
            config = ConfigLoader().load_from_env()
        self.assertEqual(config.logging.level, 'WARNING')

    def test_get_set(self):
        """Test dotted-key access."""
        from tinysh.core.config_loader import ConfigLoader
        from tinysh.exceptions import ConfigError

        loader = ConfigLoader()
        loader.set('shell.conditional_gating', True)

        self.assertTrue(loader.get('shell.conditional_gating'))
        self.assertEqual(loader.get('shell.nothing', 'x'), 'x')
        self.assertEqual(loader.to_dict()['process']['ps_command'], ['ps', 'aux'])

        with self.assertRaises(ConfigError):
            loader.set('shell.nothing', 1)


class TestTokenizer(unittest.TestCase):
    """Test the flat tokenizer."""

    def test_operators(self):
        """Longest operators win."""
        from tinysh.shell.parser import CommandParser, TokenType

        tokens = CommandParser().tokenize("a && b || c | d < e > f >> g")
        types = [t.type for t in tokens]

        self.assertEqual(types, [
            TokenType.WORD, TokenType.AND,
            TokenType.WORD, TokenType.OR,
            TokenType.WORD, TokenType.PIPE,
            TokenType.WORD, TokenType.REDIRECT_IN,
            TokenType.WORD, TokenType.REDIRECT_OUT,
            TokenType.WORD, TokenType.REDIRECT_APPEND,
            TokenType.WORD,
        ])

    def test_operators_break_words(self):
        """Operators need no surrounding whitespace."""
        from tinysh.shell.parser import CommandParser, TokenType

        tokens = CommandParser().tokenize("ls|wc>out")

        self.assertEqual([t.value for t in tokens], ['ls', '|', 'wc', '>', 'out'])
        self.assertEqual(tokens[1].type, TokenType.PIPE)

    def test_lone_ampersand_is_word(self):
        """A single & is an ordinary character."""
        from tinysh.shell.parser import CommandParser, TokenType

        tokens = CommandParser().tokenize("sleep 1 &")

        self.assertEqual(tokens[-1].type, TokenType.WORD)
        self.assertEqual(tokens[-1].value, '&')

    def test_spans(self):
        """Token spans index into the source text."""
        from tinysh.shell.parser import CommandParser

        text = "cat  <  in.txt"
        for token in CommandParser().tokenize(text):
            self.assertEqual(text[token.start:token.end], token.value)


class TestConditionalSplitter(unittest.TestCase):
    """Test && / || splitting."""

    def test_operators_recorded(self):
        """Each segment records the operator in front of it."""
        from tinysh.shell.parser import CommandParser, JoinOperator

        segments = CommandParser().split_conditionals("a && b || c")

        self.assertEqual([s.text for s in segments], ['a', 'b', 'c'])
        self.assertEqual(
            [s.join_operator for s in segments],
            [JoinOperator.NONE, JoinOperator.AND, JoinOperator.OR]
        )

    def test_or_before_and(self):
        """Order follows the line, whichever operator comes first."""
        from tinysh.shell.parser import CommandParser, JoinOperator

        segments = CommandParser().split_conditionals("a || b && c")

        self.assertEqual([s.text for s in segments], ['a', 'b', 'c'])
        self.assertEqual(
            [s.join_operator for s in segments],
            [JoinOperator.NONE, JoinOperator.OR, JoinOperator.AND]
        )

    def test_gate_always_open(self):
        """The splitter never closes the execution gate."""
        from tinysh.shell.parser import CommandParser

        segments = CommandParser().split_conditionals("false && true || false && x")

        self.assertTrue(all(s.execution_gate for s in segments))

    def test_no_operators(self):
        """A plain line is one segment."""
        from tinysh.shell.parser import CommandParser, JoinOperator

        segments = CommandParser().split_conditionals("  ls -l | wc  ")

        self.assertEqual(len(segments), 1)
        self.assertEqual(segments[0].text, 'ls -l | wc')
        self.assertEqual(segments[0].join_operator, JoinOperator.NONE)

    def test_trailing_operator(self):
        """A dangling operator leaves an empty last segment."""
        from tinysh.shell.parser import CommandParser

        segments = CommandParser().split_conditionals("echo a &&")

        self.assertEqual([s.text for s in segments], ['echo a', ''])


class TestPipelineSplitter(unittest.TestCase):
    """Test | splitting."""

    def test_stages_trimmed_in_order(self):
        from tinysh.shell.parser import CommandParser

        stages = CommandParser().split_pipeline(" cat f |sort|  uniq -c ")

        self.assertEqual(stages, ['cat f', 'sort', 'uniq -c'])

    def test_single_stage(self):
        from tinysh.shell.parser import CommandParser

        self.assertEqual(CommandParser().split_pipeline("echo hi > f"), ['echo hi > f'])

    def test_empty_stage_kept(self):
        """Empty stages stay in place; the launcher skips them."""
        from tinysh.shell.parser import CommandParser

        self.assertEqual(CommandParser().split_pipeline("ls | | wc"), ['ls', '', 'wc'])


class TestRedirectParser(unittest.TestCase):
    """Test per-stage redirect extraction."""

    def setUp(self):
        from tinysh.shell.parser import CommandParser
        self.parser = CommandParser()

    def test_no_redirects(self):
        text, spec = self.parser.parse_redirects("  ls -l ")

        self.assertEqual(text, "ls -l")
        self.assertTrue(spec.is_empty)
        self.assertFalse(spec.ambiguous)

    def test_input(self):
        text, spec = self.parser.parse_redirects("sort < data.txt")

        self.assertEqual(text, "sort")
        self.assertEqual(spec.input_path, "data.txt")
        self.assertIsNone(spec.output_path)

    def test_output_truncate(self):
        text, spec = self.parser.parse_redirects("echo hi > out.txt")

        self.assertEqual(text, "echo hi")
        self.assertEqual(spec.output_path, "out.txt")
        self.assertFalse(spec.append_mode)

    def test_output_append(self):
        text, spec = self.parser.parse_redirects("echo hi >> out.txt")

        self.assertEqual(text, "echo hi")
        self.assertEqual(spec.output_path, "out.txt")
        self.assertTrue(spec.append_mode)

    def test_input_and_output(self):
        """Both directions in either order."""
        text, spec = self.parser.parse_redirects("sort < in.txt > out.txt")
        self.assertEqual((text, spec.input_path, spec.output_path), ("sort", "in.txt", "out.txt"))

        text, spec = self.parser.parse_redirects("sort >> out.txt < in.txt")
        self.assertEqual((text, spec.input_path, spec.output_path), ("sort", "in.txt", "out.txt"))
        self.assertTrue(spec.append_mode)

    def test_path_runs_to_end(self):
        """A target is everything up to the next redirect."""
        text, spec = self.parser.parse_redirects("cat < my file.txt")

        self.assertEqual(text, "cat")
        self.assertEqual(spec.input_path, "my file.txt")

    def test_double_output_left_unmodified(self):
        """Two > leave the stage text untouched and no output target."""
        text, spec = self.parser.parse_redirects("echo a > b > c")

        self.assertEqual(text, "echo a > b > c")
        self.assertIsNone(spec.output_path)
        self.assertTrue(spec.ambiguous)

    def test_double_input_other_direction_kept(self):
        """An ambiguous direction does not block the other one."""
        text, spec = self.parser.parse_redirects("cat < a < b > out")

        self.assertEqual(text, "cat < a < b")
        self.assertIsNone(spec.input_path)
        self.assertEqual(spec.output_path, "out")
        self.assertTrue(spec.ambiguous)

    def test_missing_target(self):
        """An operator with nothing after it redirects nothing."""
        text, spec = self.parser.parse_redirects("echo hi >")

        self.assertEqual(text, "echo hi")
        self.assertIsNone(spec.output_path)
        self.assertFalse(spec.append_mode)


class TestEnvironmentExpander(unittest.TestCase):
    """Test $NAME substitution."""

    def test_identity_without_dollar(self):
        """Lines without $ are never changed."""
        from tinysh.shell.expander import EnvironmentExpander

        expander = EnvironmentExpander({'HOME': '/home/ada', 'A': 'x', '': 'y'})

        for line in ["ls -l", "echo HOME", "", "a && b | c > d"]:
            self.assertEqual(expander.expand(line), line)

    def test_expand(self):
        from tinysh.shell.expander import EnvironmentExpander

        expander = EnvironmentExpander({'USER': 'ada', 'HOME': '/home/ada'})

        self.assertEqual(expander.expand("cd $HOME && echo $USER"), "cd /home/ada && echo ada")
        self.assertEqual(expander.expand("echo $UNSET"), "echo $UNSET")

    def test_prefix_capture(self):
        """No word boundary: $HOME matches the front of $HOMEX."""
        from tinysh.shell.expander import EnvironmentExpander

        expander = EnvironmentExpander({'HOME': '/home/ada'})

        self.assertEqual(expander.expand("echo $HOMEX"), "echo /home/adaX")

    def test_order_dependent(self):
        """Overlapping names resolve in mapping order."""
        from tinysh.shell.expander import EnvironmentExpander

        self.assertEqual(EnvironmentExpander({'A': '1', 'AB': '2'}).expand("$AB"), "1B")
        self.assertEqual(EnvironmentExpander({'AB': '2', 'A': '1'}).expand("$AB"), "2")

    def test_mapping_shared_not_copied(self):
        from tinysh.shell.expander import EnvironmentExpander

        environ = {'X': '1'}
        expander = EnvironmentExpander(environ)
        environ['Y'] = '2'

        self.assertIs(expander.environ, environ)
        self.assertEqual(expander.expand("$X$Y"), "12")
        self.assertEqual(environ, {'X': '1', 'Y': '2'})

    def test_snapshot(self):
        """The snapshot is an independent copy."""
        from tinysh.shell.expander import snapshot_environment

        source = {'PATH': '/bin'}
        snapshot = snapshot_environment(source)
        snapshot['PATH'] = '/usr/bin'

        self.assertEqual(source['PATH'], '/bin')
        self.assertEqual(snapshot_environment().get('PATH'), os.environ.get('PATH'))


class TestPipes(unittest.TestCase):
    """Test pipe ownership and release."""

    def test_create_and_wire(self):
        from tinysh.ipc.pipe import PipeSet

        with PipeSet.create(2) as pipes:
            self.assertEqual(len(pipes), 2)
            self.assertIsNone(pipes.stdin_for(0))
            self.assertEqual(pipes.stdin_for(1), pipes[0].read_fd)
            self.assertEqual(pipes.stdout_for(1), pipes[1].write_fd)
            self.assertIsNone(pipes.stdout_for(2))

            os.write(pipes[0].write_fd, b"data")
            self.assertEqual(os.read(pipes[0].read_fd, 4), b"data")

        self.assertTrue(pipes.released)

    def test_release_idempotent(self):
        """Releasing twice, or after an end was closed, raises nothing."""
        from tinysh.ipc.pipe import PipeSet

        pipes = PipeSet.create(1)
        os.close(pipes[0].write_fd)

        pipes.release()
        pipes.release()

        self.assertTrue(pipes.released)

    def test_release_stage(self):
        """Only the ends handed to a stage are closed."""
        from tinysh.ipc.pipe import PipeSet

        with PipeSet.create(2) as pipes:
            pipes.release_stage(1)

            self.assertIsNone(pipes[0].read_fd)
            self.assertIsNotNone(pipes[0].write_fd)
            self.assertIsNone(pipes[1].write_fd)
            self.assertIsNotNone(pipes[1].read_fd)

    def test_create_failure_releases(self):
        """A failed pipe() releases the pipes already made."""
        from tinysh.exceptions import PipeError
        from tinysh.ipc.pipe import Pipe, PipeSet

        real_open = Pipe.open
        created = []

        def flaky_open(index):
            if index == 1:
                raise OSError(24, "Too many open files")
            pipe = real_open(index)
            created.append(pipe)
            return pipe

        with mock.patch.object(Pipe, 'open', side_effect=flaky_open):
            with self.assertRaises(PipeError) as ctx:
                PipeSet.create(3)

        self.assertEqual(ctx.exception.pipe_index, 1)
        self.assertTrue(created[0].closed)


class TestRedirectHandles(unittest.TestCase):
    """Test release of redirect files."""

    def test_close_after_failed_flush(self):
        """Every handle is closed even when one fails to flush."""
        from tinysh.process.launcher import RedirectHandles

        stdin = mock.Mock()
        stdout = mock.Mock()
        stdout.close.side_effect = OSError(28, "No space left on device")
        handles = RedirectHandles(stdin=stdin, stdout=stdout)

        handles.close()
        handles.close()

        self.assertTrue(handles.closed)
        stdin.close.assert_called_once_with()
        stdout.close.assert_called_once_with()

    def test_context_manager(self):
        from tinysh.process.launcher import RedirectHandles

        stdout = mock.Mock()
        with RedirectHandles(stdout=stdout) as handles:
            self.assertFalse(handles.closed)

        stdout.close.assert_called_once_with()


class TestPipelineReaping(unittest.TestCase):
    """Test that every started stage is waited for."""

    def test_interrupt_still_reaps_all(self):
        """An interrupt during one wait still reaps the later stages."""
        from tinysh.process.launcher import ProcessLauncher

        first = mock.Mock()
        first.wait.side_effect = [KeyboardInterrupt(), 0]
        second = mock.Mock()
        second.wait.return_value = 0

        with self.assertRaises(KeyboardInterrupt):
            ProcessLauncher._wait_all([first, second])

        self.assertEqual(first.wait.call_count, 2)
        second.wait.assert_called_once_with()

    def test_no_interrupt(self):
        from tinysh.process.launcher import ProcessLauncher

        handles = [mock.Mock(), mock.Mock()]

        ProcessLauncher._wait_all(handles)

        for handle in handles:
            handle.wait.assert_called_once_with()


if __name__ == '__main__':
    unittest.main()
