import json
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from chatlog_translator.core.supervisor import PollingSupervisor
from chatlog_translator.main import build_supervisor, main, parse_args
from chatlog_translator.services.options import YamlOptionsProvider
from chatlog_translator.utils.settings import AppSettings


class TestAppMain(unittest.TestCase):

    def setUp(self):
        self.test_dir = Path(tempfile.mkdtemp())
        self.log_dir = self.test_dir / "log"
        self.log_dir.mkdir()
        self.options = self.test_dir / "options.yml"
        self.options.write_text("language: 1\ntranslationMode: 1\ndeeplApiKey: k\n", encoding='utf-8')

        self.config_path = self.test_dir / "translator_config.json"
        self.config_path.write_text(json.dumps({
            'log_dir': str(self.log_dir),
            'options_file': str(self.options),
            'host_window_title': '',
            'info_log_enabled': False,
        }), encoding='utf-8')

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_parse_args(self):
        args = parse_args(["--once", "--config", "x.json"])
        self.assertTrue(args.once)
        self.assertFalse(args.no_tray)
        self.assertEqual(args.config, "x.json")

    def test_build_supervisor_wiring(self):
        settings = AppSettings(log_dir=str(self.log_dir), options_file=str(self.options), poll_interval=1.5)
        probe = MagicMock(return_value=True)

        supervisor = build_supervisor(settings, probe)

        self.assertIsInstance(supervisor, PollingSupervisor)
        self.assertEqual(supervisor.interval, 1.5)
        self.assertIs(supervisor.liveness_probe, probe)
        self.assertEqual(supervisor.scanner.directory, self.log_dir)
        self.assertEqual(supervisor.error_marker.path, self.log_dir / "translation_error.txt")
        self.assertIsInstance(supervisor.config_provider, YamlOptionsProvider)
        # Every component reports to the same marker
        self.assertIs(supervisor.cleaner.error_marker, supervisor.error_marker)

    @patch('chatlog_translator.main.setup_logging')
    @patch('chatlog_translator.main.InstanceLock')
    @patch('chatlog_translator.services.translator.requests.post')
    def test_once_runs_single_cycle(self, mock_post, mock_lock_cls, mock_setup_logging):
        mock_lock_cls.return_value.acquire.return_value = True
        response = MagicMock(status_code=200)
        response.json.return_value = {'translations': [{'text': 'Hello'}]}
        mock_post.return_value = response
        (self.log_dir / "chat1.txt").write_text("10:00\tAlice\tこんにちは\n", encoding='utf-8')

        self.assertEqual(main(["--once", "--config", str(self.config_path)]), 0)

        outputs = list(self.log_dir.glob("translatedChat*.txt"))
        self.assertEqual(len(outputs), 1)
        self.assertEqual(outputs[0].read_text(encoding='utf-8'), "10:00\tAlice\tこんにちは\tHello\n")
        self.assertFalse((self.log_dir / "chat1.txt").exists())
        mock_lock_cls.return_value.release.assert_called_once()

    @patch('chatlog_translator.main.setup_logging')
    @patch('chatlog_translator.main.InstanceLock')
    @patch('chatlog_translator.main.build_supervisor')
    def test_second_instance_exits_silently(self, mock_build, mock_lock_cls, mock_setup_logging):
        mock_lock_cls.return_value.acquire.return_value = False
        self.assertEqual(main(["--once", "--config", str(self.config_path)]), 0)
        mock_build.assert_not_called()

    @patch('chatlog_translator.main.setup_logging')
    @patch('chatlog_translator.main.InstanceLock')
    @patch('chatlog_translator.main.WindowLivenessProbe')
    def test_host_not_running(self, mock_probe_cls, mock_lock_cls, mock_setup_logging):
        mock_probe_cls.return_value.is_alive.return_value = False
        self.assertEqual(main(["--once", "--config", str(self.config_path)]), 1)
        mock_lock_cls.return_value.acquire.assert_not_called()

    @patch('chatlog_translator.main.setup_logging')
    @patch('chatlog_translator.main.InstanceLock')
    def test_first_run_writes_settings(self, mock_lock_cls, mock_setup_logging):
        mock_lock_cls.return_value.acquire.return_value = False
        new_config = self.test_dir / "fresh.json"
        main(["--once", "--config", str(new_config)])
        self.assertTrue(new_config.exists())
        self.assertEqual(json.loads(new_config.read_text(encoding='utf-8'))['poll_interval'], 5.0)


if __name__ == '__main__':
    unittest.main()
