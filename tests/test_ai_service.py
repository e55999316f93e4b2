"""
NexusHub - AI Drafting Tests
"""
import pytest
from unittest import mock

import requests

from nexushub.services.ai_service import AIService, default_keywords, strip_code_fences


def _openai_response(content, status_code=200):
    response = mock.Mock()
    response.status_code = status_code
    response.text = 'error body'
    response.json.return_value = {'choices': [{'message': {'content': content}}]}
    return response


@pytest.fixture
def no_keys(monkeypatch):
    monkeypatch.delenv('OPENAI_API_KEY', raising=False)
    monkeypatch.delenv('ANTHROPIC_API_KEY', raising=False)


@pytest.fixture
def openai_key(monkeypatch):
    monkeypatch.setenv('OPENAI_API_KEY', 'sk-test')
    monkeypatch.delenv('ANTHROPIC_API_KEY', raising=False)


class TestHelpers:

    def test_strip_code_fences(self):
        assert strip_code_fences('```html\n<h3>Título</h3>\n```') == '<h3>Título</h3>'
        assert strip_code_fences('<p>sem cerca</p>') == '<p>sem cerca</p>'
        assert strip_code_fences(None) == ''

    def test_default_keywords(self):
        assert default_keywords('moda sustentável verão') == 'moda, sustentável, verão'


class TestAIService:

    def test_unconfigured_returns_error_string(self, no_keys):
        outline = AIService().generate_outline('Moda sustentável', 'friendly')

        assert outline.startswith('Error:')

    def test_missing_topic(self, openai_key):
        assert AIService().generate_outline('  ', 'friendly').startswith('Error:')

    def test_missing_outline(self, openai_key):
        assert AIService().generate_full_draft('', 'Moda', 'friendly').startswith('Error:')

    def test_outline_strips_fences(self, openai_key):
        with mock.patch('nexushub.services.ai_service.requests.post',
                        return_value=_openai_response('```html\n<h3>Verão</h3><ul><li>A</li></ul>\n```')) as post:
            outline = AIService().generate_outline('Moda verão', 'friendly')

        assert outline == '<h3>Verão</h3><ul><li>A</li></ul>'
        prompt = post.call_args.kwargs['json']['messages'][1]['content']
        assert 'Moda, verão' in prompt
        assert 'Brazilian Portuguese' in prompt

    def test_draft_uses_given_keywords(self, openai_key):
        with mock.patch('nexushub.services.ai_service.requests.post',
                        return_value=_openai_response('<p>Texto</p>')) as post:
            draft = AIService().generate_full_draft('<h3>Verão</h3>', 'Moda', 'formal', 'moda praia')

        assert draft == '<p>Texto</p>'
        assert 'moda praia' in post.call_args.kwargs['json']['messages'][1]['content']

    def test_rate_limit(self, openai_key):
        with mock.patch('nexushub.services.ai_service.requests.post',
                        return_value=_openai_response('', status_code=429)):
            result = AIService().generate_outline('Moda', 'friendly')

        assert result.startswith('Error:')
        assert '429' in result

    def test_network_failure(self, openai_key):
        with mock.patch('nexushub.services.ai_service.requests.post',
                        side_effect=requests.exceptions.Timeout()):
            assert AIService().generate_outline('Moda', 'friendly').startswith('Error:')

    def test_anthropic_fallback(self, monkeypatch):
        monkeypatch.delenv('OPENAI_API_KEY', raising=False)
        monkeypatch.setenv('ANTHROPIC_API_KEY', 'ak-test')
        response = mock.Mock()
        response.json.return_value = {'content': [{'text': '<h3>Olá</h3>'}]}

        with mock.patch('nexushub.services.ai_service.requests.post', return_value=response) as post:
            outline = AIService().generate_outline('Moda', 'friendly')

        assert outline == '<h3>Olá</h3>'
        assert post.call_args.args[0] == 'https://api.anthropic.com/v1/messages'
