import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

import requests

from chatlog_translator.core.errors import ProviderError
from chatlog_translator.core.parser import ChatRecord
from chatlog_translator.services.options import (
    APPS_SCRIPT_LANGUAGES, DEEPL_LANGUAGES, TranslationConfig, TranslationMode, resolve_language,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class TranslationProvider(ABC):
    """
    A translation backend. Takes an ordered list of texts and returns the
    translations in the same order, or raises ProviderError.
    """
    LANGUAGES: Tuple[str, ...] = ()
    DEFAULT_LANGUAGE: str = 'en'

    def __init__(self, timeout: Optional[float] = DEFAULT_TIMEOUT):
        self.timeout = timeout

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def translate(self, texts: List[str], config: TranslationConfig) -> List[str]:
        pass

    @classmethod
    def resolve_language(cls, index: Optional[int]) -> str:
        """Map a 1-based option index to this backend's language code."""
        return resolve_language(cls.LANGUAGES, cls.DEFAULT_LANGUAGE, index)

    def _post(self, url: str, error_hint: str, **kwargs) -> requests.Response:
        try:
            resp = requests.post(url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise ProviderError(f"translation request error. ({self.name}: {e})") from e

        if resp.status_code != 200:
            raise ProviderError(f"translation request error (HTTP {resp.status_code}). {error_hint}")
        return resp

    def _json(self, resp: requests.Response):
        try:
            return resp.json()
        except ValueError as e:
            raise ProviderError(f"failed to parse JSON response. ({self.name})") from e


class MockTranslator(TranslationProvider):
    @property
    def name(self) -> str:
        return "Mock"

    def translate(self, texts: List[str], config: TranslationConfig) -> List[str]:
        return [f"[MOCK] {text}" for text in texts]


class DeepLProvider(TranslationProvider):
    """
    DeepL REST API. All texts go out in one form-encoded request as repeated
    'text' fields; translations come back in request order.
    """
    DEFAULT_URL = "https://api-free.deepl.com/v2/translate"

    LANGUAGES = DEEPL_LANGUAGES
    DEFAULT_LANGUAGE = 'EN-US'

    def __init__(self, url: str = DEFAULT_URL, timeout: Optional[float] = DEFAULT_TIMEOUT):
        super().__init__(timeout)
        self.url = url

    @property
    def name(self) -> str:
        return "DeepL"

    def translate(self, texts: List[str], config: TranslationConfig) -> List[str]:
        logger.info("start deepL translate.")
        form = [('auth_key', config.api_key or ''), ('target_lang', config.target_language)]
        form.extend(('text', text) for text in texts)

        resp = self._post(self.url, "please check your DeepL API Key.", data=form)
        body = self._json(resp)

        translations = body.get('translations') if isinstance(body, dict) else None
        if not isinstance(translations, list):
            raise ProviderError("unexpected response shape. (DeepL)")

        results = []
        for item in translations:
            if not isinstance(item, dict) or not isinstance(item.get('text'), str):
                raise ProviderError("unexpected translation entry. (DeepL)")
            results.append(item['text'])
        return results


class AppsScriptProvider(TranslationProvider):
    """
    Google Apps Script web app deployed by the user. Receives
    {"texts": [...], "target": code} and answers with a JSON array of strings.
    """
    BASE_URL = "https://script.google.com/macros/s/"

    LANGUAGES = APPS_SCRIPT_LANGUAGES
    DEFAULT_LANGUAGE = 'en'

    def __init__(self, base_url: str = BASE_URL, timeout: Optional[float] = DEFAULT_TIMEOUT):
        super().__init__(timeout)
        self.base_url = base_url

    @property
    def name(self) -> str:
        return "GoogleAppsScript"

    def deployment_url(self, deployment_id: str) -> str:
        return f"{self.base_url}{deployment_id}/exec"

    def translate(self, texts: List[str], config: TranslationConfig) -> List[str]:
        logger.info("start google translate.")
        url = self.deployment_url(config.deployment_id or '')
        payload = {'texts': list(texts), 'target': config.target_language}

        resp = self._post(url, "please check your Google App Script Deployment ID.", json=payload)
        body = self._json(resp)

        if not isinstance(body, list) or not all(isinstance(t, str) for t in body):
            raise ProviderError("unexpected response shape. (Gas)")
        return body


PROVIDER_CLASSES = {
    TranslationMode.DEEPL: DeepLProvider,
    TranslationMode.GOOGLE_APPS_SCRIPT: AppsScriptProvider,
}


class TranslationService:
    """
    Dispatches a batch to the provider selected by the cycle's config and
    guarantees the result is aligned with the batch.
    """

    def __init__(self, providers: Optional[Dict[TranslationMode, TranslationProvider]] = None):
        if providers is None:
            providers = {mode: cls() for mode, cls in PROVIDER_CLASSES.items()}
        self.providers = providers

    @classmethod
    def from_settings(cls, settings) -> "TranslationService":
        return cls({
            TranslationMode.DEEPL: DeepLProvider(settings.deepl_url, settings.request_timeout),
            TranslationMode.GOOGLE_APPS_SCRIPT: AppsScriptProvider(settings.apps_script_url, settings.request_timeout),
        })

    def translate(self, batch: List[ChatRecord], config: TranslationConfig) -> List[str]:
        provider = self.providers.get(config.provider)
        if provider is None:
            raise ProviderError(f"No provider registered for {config.provider!r}")

        texts = [record.text for record in batch]
        results = provider.translate(texts, config)

        if len(results) != len(texts):
            raise ProviderError(
                f"{provider.name} returned {len(results)} translations for {len(texts)} messages."
            )
        logger.info(f"[{provider.name}] Translated {len(results)} messages to {config.target_language}")
        return results
