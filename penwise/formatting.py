# penwise/formatting.py
import markdown
from bs4 import BeautifulSoup


def to_html(raw_markdown_text):
    return markdown.markdown(raw_markdown_text or '', extensions=['fenced_code', 'tables'])


def to_plain_text(raw_markdown_text):
    """Generated text arrives as markdown; strip it down to readable words."""
    soup = BeautifulSoup(to_html(raw_markdown_text), 'html.parser')
    return soup.get_text(separator=' ', strip=True)


def excerpt(raw_markdown_text, length=160):
    text = to_plain_text(raw_markdown_text)
    if len(text) <= length:
        return text
    return text[:length].rsplit(' ', 1)[0].rstrip() + '...'


def word_count(raw_markdown_text):
    return len(to_plain_text(raw_markdown_text).split())
