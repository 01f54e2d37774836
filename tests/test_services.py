import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from chatlog_translator.core.errors import ConfigError, ProviderError
from chatlog_translator.core.parser import ChatRecord
from chatlog_translator.services.options import (
    LANGUAGE_TABLES, StaticConfigProvider, TranslationConfig, TranslationMode, YamlOptionsProvider,
    resolve_target_language,
)
from chatlog_translator.services.translator import (
    PROVIDER_CLASSES, AppsScriptProvider, DeepLProvider, MockTranslator, TranslationService,
)
from chatlog_translator.utils.settings import AppSettings


def test_language_tables_are_aligned():
    assert len(DeepLProvider.LANGUAGES) == len(AppsScriptProvider.LANGUAGES) == 16


@pytest.mark.parametrize("mode,index,expected", [
    (TranslationMode.DEEPL, 1, 'EN-US'),
    (TranslationMode.DEEPL, 3, 'JA'),
    (TranslationMode.DEEPL, 16, 'AR'),
    (TranslationMode.GOOGLE_APPS_SCRIPT, 2, 'en'),
    (TranslationMode.GOOGLE_APPS_SCRIPT, 5, 'zh-CN'),
    (TranslationMode.GOOGLE_APPS_SCRIPT, 10, 'pt-BR'),
])
def test_resolve_language(mode, index, expected):
    assert resolve_target_language(mode, index) == expected


@pytest.mark.parametrize("index", [0, -1, 17, 99, None])
def test_resolve_language_out_of_range_falls_back(index):
    assert resolve_target_language(TranslationMode.DEEPL, index) == 'EN-US'
    assert resolve_target_language(TranslationMode.GOOGLE_APPS_SCRIPT, index) == 'en'


def test_same_index_differs_per_backend():
    assert resolve_target_language(TranslationMode.DEEPL, 5) == 'ZH-HANS'
    assert resolve_target_language(TranslationMode.GOOGLE_APPS_SCRIPT, 5) == 'zh-CN'


def test_provider_tables_match_options_tables():
    for mode, (languages, default) in LANGUAGE_TABLES.items():
        provider_cls = PROVIDER_CLASSES[mode]
        assert provider_cls.LANGUAGES is languages
        assert provider_cls.DEFAULT_LANGUAGE == default
        assert provider_cls.resolve_language(3) == resolve_target_language(mode, 3)


class TestTranslationService(unittest.TestCase):

    def setUp(self):
        self.batch = [ChatRecord("1", "A", "one"), ChatRecord("2", "B", "two")]
        self.config = TranslationConfig(TranslationMode.DEEPL, 'EN-US', api_key='k')

    def test_dispatches_on_config_mode(self):
        deepl = MagicMock()
        deepl.translate.return_value = ["uno", "dos"]
        gas = MagicMock()
        service = TranslationService({TranslationMode.DEEPL: deepl, TranslationMode.GOOGLE_APPS_SCRIPT: gas})

        self.assertEqual(service.translate(self.batch, self.config), ["uno", "dos"])
        deepl.translate.assert_called_once_with(["one", "two"], self.config)
        gas.translate.assert_not_called()

    def test_length_mismatch_is_provider_error(self):
        provider = MagicMock()
        provider.name = "Short"
        provider.translate.return_value = ["uno"]
        service = TranslationService({TranslationMode.DEEPL: provider})

        with self.assertRaises(ProviderError):
            service.translate(self.batch, self.config)

    def test_missing_provider(self):
        service = TranslationService({TranslationMode.DEEPL: MockTranslator()})
        gas_config = TranslationConfig(TranslationMode.GOOGLE_APPS_SCRIPT, 'en', deployment_id='d')
        with self.assertRaises(ProviderError):
            service.translate(self.batch, gas_config)

    def test_mock_translator(self):
        service = TranslationService({TranslationMode.DEEPL: MockTranslator()})
        self.assertEqual(service.translate(self.batch, self.config), ["[MOCK] one", "[MOCK] two"])

    def test_from_settings(self):
        settings = AppSettings(deepl_url="https://api.deepl.com/v2/translate", request_timeout=7.5)
        service = TranslationService.from_settings(settings)
        deepl = service.providers[TranslationMode.DEEPL]
        self.assertEqual(deepl.url, "https://api.deepl.com/v2/translate")
        self.assertEqual(deepl.timeout, 7.5)
        self.assertIsInstance(service.providers[TranslationMode.GOOGLE_APPS_SCRIPT], AppsScriptProvider)


class TestYamlOptionsProvider(unittest.TestCase):

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.path = Path(self.test_dir) / "options.yml"

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def load(self, text):
        self.path.write_text(text, encoding='utf-8')
        return YamlOptionsProvider(self.path).load()

    def test_deepl_options(self):
        config = self.load("language: 3\ntranslationMode: 1\ndeeplApiKey: 'abc:fx'\n")
        self.assertEqual(config, TranslationConfig(TranslationMode.DEEPL, 'JA', api_key='abc:fx'))

    def test_apps_script_options(self):
        config = self.load("language: 4\ntranslationMode: 2\ngoogleAppScriptDeploymentId: AKfy\n")
        self.assertEqual(config.provider, TranslationMode.GOOGLE_APPS_SCRIPT)
        self.assertEqual(config.target_language, 'ko')
        self.assertEqual(config.deployment_id, 'AKfy')
        self.assertIsNone(config.api_key)

    def test_out_of_range_language_falls_back(self):
        config = self.load("language: 42\ntranslationMode: 1\ndeeplApiKey: k\n")
        self.assertEqual(config.target_language, 'EN-US')

    def test_missing_language_uses_default(self):
        config = self.load("translationMode: 2\ngoogleAppScriptDeploymentId: d\n")
        self.assertEqual(config.target_language, 'en')

    def test_missing_credentials(self):
        with self.assertRaisesRegex(ConfigError, "DeepL API Key not set"):
            self.load("language: 1\ntranslationMode: 1\ndeeplApiKey: ''\n")
        with self.assertRaisesRegex(ConfigError, "Deployment ID not set"):
            # The DeepL key does not count for Apps Script mode
            self.load("language: 1\ntranslationMode: 2\ndeeplApiKey: k\n")

    def test_invalid_mode(self):
        for text in ("translationMode: 3\n", "translationMode: true\n", "language: 1\n", "translationMode: deepl\n"):
            with self.subTest(text=text):
                with self.assertRaisesRegex(ConfigError, "translation mode not set"):
                    self.load(text)

    def test_invalid_language(self):
        with self.assertRaises(ConfigError):
            self.load("language: japanese\ntranslationMode: 1\ndeeplApiKey: k\n")

    def test_missing_file(self):
        with self.assertRaisesRegex(ConfigError, "Please set up"):
            YamlOptionsProvider(Path(self.test_dir) / "nope.yml").load()

    def test_not_a_mapping(self):
        with self.assertRaises(ConfigError):
            self.load("- 1\n- 2\n")
        with self.assertRaises(ConfigError):
            self.load("")

    def test_broken_yaml(self):
        with self.assertRaises(ConfigError):
            self.load("language: [1\n")

    def test_static_provider(self):
        config = TranslationConfig(TranslationMode.DEEPL, 'DE', api_key='k')
        self.assertIs(StaticConfigProvider(config).load(), config)


if __name__ == '__main__':
    unittest.main()
