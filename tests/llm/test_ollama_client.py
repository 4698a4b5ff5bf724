import json
import unittest
from types import SimpleNamespace
from unittest.mock import Mock, patch

import requests

from weekly_report.llm.ollama_client import LLMError, OllamaClient, strip_thinking_tags


class DummyResponse(SimpleNamespace):
    def json(self):
        return json.loads(self.text)


class TestOllamaClient(unittest.TestCase):
    def test_generate_success(self) -> None:
        def fake_post(url, *_args, **kwargs):
            return DummyResponse(status_code=200, text=json.dumps({"response": "Hello"}))

        with patch("requests.post", fake_post):
            client = OllamaClient("http://localhost", 11434, "model")
            self.assertEqual(client.generate("prompt"), "Hello")

    def test_generate_sends_sampling_options(self) -> None:
        captured = {}

        def fake_post(url, *_args, **kwargs):
            captured["url"] = url
            captured["payload"] = kwargs["json"]
            return DummyResponse(status_code=200, text=json.dumps({"response": "[]"}))

        with patch("requests.post", fake_post):
            client = OllamaClient("http://localhost", 11434, "llama3", max_tokens=100)
            client.generate("prompt", temperature=0.3, max_tokens=4000)

        self.assertEqual(captured["url"], "http://localhost:11434/api/generate")
        self.assertEqual(captured["payload"]["options"], {"num_predict": 4000, "temperature": 0.3})
        self.assertFalse(captured["payload"]["stream"])

    def test_generate_uses_default_budget(self) -> None:
        captured = {}

        def fake_post(url, *_args, **kwargs):
            captured["payload"] = kwargs["json"]
            return DummyResponse(status_code=200, text=json.dumps({"response": "ok"}))

        with patch("requests.post", fake_post):
            OllamaClient("http://localhost", 11434, "llama3", max_tokens=100).generate("p")

        self.assertEqual(captured["payload"]["options"], {"num_predict": 100})

    def test_generate_error_status(self) -> None:
        def fake_post(url, *_args, **kwargs):
            return DummyResponse(status_code=500, text="Internal error")

        with patch("requests.post", fake_post):
            client = OllamaClient("http://localhost", 11434, "model")
            with self.assertRaises(LLMError):
                client.generate("prompt")

    def test_generate_invalid_json(self) -> None:
        def fake_post(url, *_args, **kwargs):
            return DummyResponse(status_code=200, text="not json")

        with patch("requests.post", fake_post):
            client = OllamaClient("http://localhost", 11434, "model")
            with self.assertRaises(LLMError):
                client.generate("prompt")

    @patch("weekly_report.llm.ollama_client.requests.post")
    def test_generate_timeout(self, mock_post) -> None:
        mock_post.side_effect = requests.Timeout("timed out")
        client = OllamaClient("http://localhost", 11434, "model")
        with self.assertRaises(LLMError):
            client.generate("prompt")

    @patch("weekly_report.llm.ollama_client.requests.post")
    def test_generate_with_message_field(self, mock_post) -> None:
        mock_response = Mock()
        mock_response.status_code = 200
        mock_response.json.return_value = {"message": {"content": "from chat"}}
        mock_post.return_value = mock_response

        client = OllamaClient("http://localhost", 11434, "llama3")
        self.assertEqual(client.generate("prompt"), "from chat")

    @patch("weekly_report.llm.ollama_client.requests.post")
    def test_generate_with_unexpected_structure(self, mock_post) -> None:
        mock_response = Mock()
        mock_response.status_code = 200
        mock_response.json.return_value = {"unexpected": "structure"}
        mock_post.return_value = mock_response

        client = OllamaClient("http://localhost", 11434, "llama3")
        with self.assertRaises(LLMError) as ctx:
            client.generate("prompt")
        self.assertIn("Unexpected response structure", str(ctx.exception))

    @patch("weekly_report.llm.ollama_client.requests.post")
    def test_generate_strips_thinking(self, mock_post) -> None:
        mock_response = Mock()
        mock_response.status_code = 200
        mock_response.json.return_value = {
            "response": "<think>Let me group these commits...</think>\n[{\"module\": \"auth\"}]"
        }
        mock_post.return_value = mock_response

        result = OllamaClient("http://localhost", 11434, "llama3").generate("prompt")
        self.assertEqual(result, '[{"module": "auth"}]')


class TestStripThinkingTags(unittest.TestCase):
    def test_removes_every_tag_kind(self) -> None:
        text = (
            "<THINK>a</THINK><thinking>b\nc</thinking><thought>d</thought>"
            "<reasoning>e</reasoning> answer "
        )
        self.assertEqual(strip_thinking_tags(text), "answer")

    def test_leaves_plain_text(self) -> None:
        self.assertEqual(strip_thinking_tags("  [1, 2]  "), "[1, 2]")


if __name__ == "__main__":
    unittest.main()
