"""
NexusHub - Notification Tests
Providers never raise; every outcome is a NotificationResult
"""
import pytest
from unittest import mock

import requests

from nexushub.models.aggregate import BlogPost, ClientAggregate
from nexushub.services.email_service import RESEND_ENDPOINT, EmailService
from nexushub.services.messaging_service import MessagingService
from nexushub.services.notification_service import NotificationService


def _response(status_code=200, payload=None):
    response = mock.Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.text = 'error body'
    response.json.return_value = payload or {}
    return response


@pytest.fixture
def unconfigured(monkeypatch):
    for key in ('RESEND_API_KEY', 'EVOLUTION_API_URL', 'EVOLUTION_API_KEY', 'EVOLUTION_INSTANCE'):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def configured(monkeypatch):
    monkeypatch.setenv('RESEND_API_KEY', 're_test')
    monkeypatch.setenv('EMAIL_FROM', 'Agency <hello@agency.test>')
    monkeypatch.setenv('EVOLUTION_API_URL', 'https://evolution.test/')
    monkeypatch.setenv('EVOLUTION_API_KEY', 'evo-key')
    monkeypatch.setenv('EVOLUTION_INSTANCE', 'agency')


class TestEmailService:

    def test_unconfigured(self, unconfigured):
        with mock.patch('nexushub.services.email_service.requests.post') as post:
            result = EmailService().send_email('alice@bloom.com', 'Hi', '<p>Hi</p>')

        assert result.success is False
        assert result.detail == 'API key missing'
        post.assert_not_called()

    def test_sends_through_resend(self, configured):
        with mock.patch('nexushub.services.email_service.requests.post',
                        return_value=_response(200, {'id': 'email_1'})) as post:
            result = EmailService().send_email('alice@bloom.com', 'Hi', '<p>Hi</p>')

        assert result.success is True
        assert result.data == {'id': 'email_1'}
        args, kwargs = post.call_args
        assert args[0] == RESEND_ENDPOINT
        assert kwargs['headers']['Authorization'] == 'Bearer re_test'
        assert kwargs['json']['to'] == ['alice@bloom.com']
        assert kwargs['json']['from'] == 'Agency <hello@agency.test>'

    def test_provider_error(self, configured):
        with mock.patch('nexushub.services.email_service.requests.post', return_value=_response(422)):
            result = EmailService().send_email('alice@bloom.com', 'Hi', '<p>Hi</p>')

        assert result.success is False
        assert '422' in result.detail

    def test_network_error(self, configured):
        with mock.patch('nexushub.services.email_service.requests.post',
                        side_effect=requests.ConnectionError('refused')):
            result = EmailService().send_email('alice@bloom.com', 'Hi', '<p>Hi</p>')

        assert result.success is False


class TestMessagingService:

    def test_unconfigured(self, unconfigured):
        result = MessagingService().send_message('(11) 98765-4321', 'Olá')

        assert result.success is False
        assert result.detail == 'Config missing'

    def test_payload_shape(self, configured):
        with mock.patch('nexushub.services.messaging_service.requests.post',
                        return_value=_response(201)) as post:
            result = MessagingService().send_message('(11) 98765-4321', 'Olá')

        assert result.success is True
        args, kwargs = post.call_args
        assert args[0] == 'https://evolution.test/message/sendText/agency'
        assert kwargs['headers']['apikey'] == 'evo-key'
        assert kwargs['json']['number'] == '11987654321'
        assert kwargs['json']['textMessage'] == {'text': 'Olá'}
        assert kwargs['json']['options']['presence'] == 'composing'

    def test_provider_error(self, configured):
        with mock.patch('nexushub.services.messaging_service.requests.post', return_value=_response(500)):
            result = MessagingService().send_message('11987654321', 'Olá')

        assert result.success is False


class TestNotificationService:

    def test_welcome_without_phone(self, unconfigured):
        results = NotificationService().send_welcome('Alice', 'alice@bloom.com')

        assert results['email'].success is False
        assert results['message'].detail == 'Phone not provided'

    def test_welcome_on_both_channels(self, configured, monkeypatch):
        monkeypatch.setenv('PORTAL_URL', 'https://portal.agency.test/')

        # Both providers share the requests module, so one patch sees both calls
        with mock.patch('nexushub.services.email_service.requests.post', return_value=_response(200)) as post:
            results = NotificationService(EmailService(), MessagingService()).send_welcome(
                'Alice', 'alice@bloom.com', '11987654321'
            )

        assert results['email'].success and results['message'].success
        assert post.call_count == 2
        sent = {call.args[0]: call.kwargs['json'] for call in post.call_args_list}
        assert 'https://portal.agency.test/' in sent[RESEND_ENDPOINT]['html']
        whatsapp = sent['https://evolution.test/message/sendText/agency']
        assert 'portal.agency.test' in whatsapp['textMessage']['text']

    def test_welcome_never_raises(self):
        email = mock.Mock()
        email.send_email.side_effect = RuntimeError('boom')

        results = NotificationService(email, mock.Mock()).send_welcome('Alice', 'alice@bloom.com')

        assert results['email'].success is False

    def test_post_published(self, configured):
        client = ClientAggregate(id='c1', email='alice@bloom.com', name='Alice', company='Bloom',
                                 site_url='bloom.com.br')
        post = BlogPost(id='p1', title='Moda <Verão>', status='published')

        with mock.patch('nexushub.services.email_service.requests.post', return_value=_response(200)) as post_call:
            result = NotificationService(EmailService(), MessagingService()).send_post_published(client, post)

        assert result.success is True
        payload = post_call.call_args.kwargs['json']
        assert payload['subject'] == 'Seu novo artigo foi publicado: Moda <Verão>'
        assert 'Moda &lt;Verão&gt;' in payload['html']
