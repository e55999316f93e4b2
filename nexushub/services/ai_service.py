"""
NexusHub - AI Drafting Service
OpenAI (Anthropic as fallback) chat completions for blog outlines and drafts
"""
import os
import re
import logging
from typing import Dict, Any, Optional

import requests

logger = logging.getLogger(__name__)

ERROR_PREFIX = 'Error:'

OUTLINE_PROMPT = """You are an SEO copywriter. Write a detailed blog post outline for a business website.
The output language MUST be {language}.

Topic: {topic}
Tone of voice: {tone}
Target keywords: {keywords}

Format the outline as a structured HTML list (<ul>, <li>) and return it as plain text.
Put a catchy suggested title at the top, wrapped in an <h3> tag.
Do not use markdown or code fences."""

DRAFT_PROMPT = """Write a complete, high-converting blog post based on this outline:
{outline}

Context:
Topic: {topic}
Tone of voice: {tone}
Language: {language}

Rules:
1. Use HTML formatting (<p>, <h2>, <h3>, <strong>, <ul>).
2. Keep paragraphs short and readable.
3. Optimize for SEO using the keywords: {keywords}.
4. Do not include markdown backticks or code fences."""

SYSTEM_PROMPT = 'You are an expert SEO content writer. Respond with HTML fragments only, never wrapped in markdown code blocks.'

_FENCE = re.compile(r'^\s*```[a-zA-Z]*\s*\n?|\n?\s*```\s*$')


def strip_code_fences(text: str) -> str:
    """Remove a markdown fence wrapping the whole response"""
    return _FENCE.sub('', text or '').strip()


def default_keywords(topic: str) -> str:
    return ', '.join((topic or '').split())


class AIService:
    """Single-shot drafting calls; every failure becomes an 'Error:' string"""

    @property
    def openai_key(self):
        """Get OpenAI API key at runtime"""
        return os.environ.get('OPENAI_API_KEY', '')

    @property
    def anthropic_key(self):
        """Get Anthropic API key at runtime"""
        return os.environ.get('ANTHROPIC_API_KEY', '')

    @property
    def default_model(self):
        return os.environ.get('DEFAULT_AI_MODEL', 'gpt-4o-mini')

    @property
    def anthropic_model(self):
        return os.environ.get('ANTHROPIC_MODEL', 'claude-3-5-haiku-latest')

    @property
    def language(self):
        return os.environ.get('AI_CONTENT_LANGUAGE', 'Brazilian Portuguese')

    @property
    def is_configured(self) -> bool:
        return bool(self.openai_key or self.anthropic_key)

    def generate_outline(self, topic: str, tone: str, keywords: Optional[str] = None) -> str:
        """HTML outline with a suggested <h3> title, or an 'Error: ...' string"""
        topic = (topic or '').strip()
        if not topic:
            return f'{ERROR_PREFIX} A topic is required.'

        prompt = OUTLINE_PROMPT.format(
            language=self.language,
            topic=topic,
            tone=tone or 'professional',
            keywords=keywords or default_keywords(topic)
        )
        return self._complete(prompt, max_tokens=1200, what='outline')

    def generate_full_draft(self, outline: str, topic: str, tone: str, keywords: Optional[str] = None) -> str:
        """Full HTML post built from an outline, or an 'Error: ...' string"""
        if not (outline or '').strip():
            return f'{ERROR_PREFIX} An outline is required.'

        prompt = DRAFT_PROMPT.format(
            outline=outline,
            language=self.language,
            topic=topic or '',
            tone=tone or 'professional',
            keywords=keywords or default_keywords(topic)
        )
        return self._complete(prompt, max_tokens=3000, what='draft')

    def _complete(self, prompt: str, max_tokens: int, what: str) -> str:
        if not self.is_configured:
            logger.warning(f"AI {what} requested but no provider key is configured")
            return f'{ERROR_PREFIX} AI provider API key is not configured.'

        if self.openai_key:
            result = self._call_openai(prompt, max_tokens)
        else:
            result = self._call_anthropic(prompt, max_tokens)

        if result.get('error'):
            logger.error(f"AI {what} generation failed: {result['error']}")
            return f"{ERROR_PREFIX} {result['error']}"

        content = strip_code_fences(result.get('content', ''))
        if not content:
            return f'{ERROR_PREFIX} The AI provider returned an empty {what}.'
        return content

    def _call_openai(self, prompt: str, max_tokens: int = 2000, temperature: float = 0.7) -> Dict[str, Any]:
        """Call OpenAI API"""
        model = self.default_model
        logger.info(f"OpenAI API call: model={model}, max_tokens={max_tokens}")

        try:
            response = requests.post(
                'https://api.openai.com/v1/chat/completions',
                headers={
                    'Authorization': f'Bearer {self.openai_key}',
                    'Content-Type': 'application/json'
                },
                json={
                    'model': model,
                    'messages': [
                        {'role': 'system', 'content': SYSTEM_PROMPT},
                        {'role': 'user', 'content': prompt}
                    ],
                    'max_tokens': max_tokens,
                    'temperature': temperature
                },
                timeout=120
            )

            if response.status_code == 429:
                return {'error': 'Rate limit exceeded (429). Please wait a minute and try again.'}

            if response.status_code != 200:
                error_text = response.text[:500]
                logger.error(f"OpenAI API error response: {error_text}")
                return {'error': f'OpenAI API error ({response.status_code})'}

            data = response.json()
            choices = data.get('choices') or []
            if not choices:
                return {'error': 'OpenAI API returned empty response'}

            return {
                'content': choices[0].get('message', {}).get('content', ''),
                'usage': data.get('usage', {})
            }

        except requests.exceptions.Timeout:
            logger.error("OpenAI API timeout")
            return {'error': 'Request timed out. Please try again.'}
        except (requests.RequestException, ValueError) as e:
            logger.error(f"OpenAI API request error: {e}")
            return {'error': f'OpenAI API error: {e}'}

    def _call_anthropic(self, prompt: str, max_tokens: int = 2000) -> Dict[str, Any]:
        """Call Anthropic Claude API (fallback)"""
        try:
            response = requests.post(
                'https://api.anthropic.com/v1/messages',
                headers={
                    'x-api-key': self.anthropic_key,
                    'Content-Type': 'application/json',
                    'anthropic-version': '2023-06-01'
                },
                json={
                    'model': self.anthropic_model,
                    'max_tokens': max_tokens,
                    'system': SYSTEM_PROMPT,
                    'messages': [
                        {'role': 'user', 'content': prompt}
                    ]
                },
                timeout=90
            )

            response.raise_for_status()
            data = response.json()

            return {
                'content': data['content'][0]['text'],
                'usage': data.get('usage', {})
            }

        except (requests.RequestException, ValueError, KeyError, IndexError) as e:
            logger.error(f"Anthropic API error: {e}")
            return {'error': f'Anthropic API error: {e}'}


# Singleton instance
ai_service = AIService()
