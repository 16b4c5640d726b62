from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest

from app.llm.exceptions import CapabilityError, CapabilityTimeoutError
from app.llm.openai_client_adapter import OpenAIClientAdapter


def _make_mock_response(content: str | None) -> MagicMock:
    choice = MagicMock()
    choice.message.content = content
    response = MagicMock()
    response.choices = [choice]
    return response


def _make_adapter(mock_client: MagicMock) -> OpenAIClientAdapter:
    with patch(
        "app.llm.openai_client_adapter.openai.OpenAI",
        return_value=mock_client,
    ):
        return OpenAIClientAdapter(
            api_key="k",
            model="gpt-test",
            timeout_seconds=30,
            base_url=None,
        )


def _complete(adapter: OpenAIClientAdapter) -> str:
    return adapter.complete(prompt="Classify this", max_tokens=50, temperature=0.1)


class TestOpenAIClientAdapter:
    def test_returns_content(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = _make_mock_response("INVOICE")
        adapter = _make_adapter(mock_client)

        assert _complete(adapter) == "INVOICE"

    def test_passes_task_parameters(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = _make_mock_response("x")
        adapter = _make_adapter(mock_client)

        _complete(adapter)

        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-test"
        assert kwargs["max_tokens"] == 50
        assert kwargs["temperature"] == 0.1
        assert kwargs["messages"] == [{"role": "user", "content": "Classify this"}]

    def test_disables_client_retries(self) -> None:
        with patch("app.llm.openai_client_adapter.openai.OpenAI") as mock_cls:
            OpenAIClientAdapter(api_key="k", model="m", timeout_seconds=12)
        mock_cls.assert_called_once_with(
            api_key="k", timeout=12, base_url=None, max_retries=0
        )

    def test_raises_error_for_empty_content(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = _make_mock_response(None)
        adapter = _make_adapter(mock_client)

        with pytest.raises(CapabilityError, match="empty response"):
            _complete(adapter)

    def test_raises_error_for_no_choices(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = MagicMock(choices=[])
        adapter = _make_adapter(mock_client)

        with pytest.raises(CapabilityError, match="no choices"):
            _complete(adapter)

    def test_raises_capability_error_on_connection_failure(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = openai.APIConnectionError(
            request=MagicMock()
        )
        adapter = _make_adapter(mock_client)

        with pytest.raises(CapabilityError, match="network error") as exc_info:
            _complete(adapter)
        assert not isinstance(exc_info.value, CapabilityTimeoutError)

    def test_raises_timeout_error_on_api_timeout(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = openai.APITimeoutError(
            request=MagicMock()
        )
        adapter = _make_adapter(mock_client)

        with pytest.raises(CapabilityTimeoutError, match="timed out"):
            _complete(adapter)

    def test_raises_timeout_error_on_httpx_timeout(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = httpx.TimeoutException("timeout")
        adapter = _make_adapter(mock_client)

        with pytest.raises(TimeoutError):
            _complete(adapter)

    def test_raises_capability_error_on_api_error(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = openai.APIError(
            message="server error",
            request=MagicMock(),
            body=None,
        )
        adapter = _make_adapter(mock_client)

        with pytest.raises(CapabilityError, match="API error"):
            _complete(adapter)
