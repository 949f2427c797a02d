# penwise/sharing.py
from urllib.parse import quote


def share_text(title, content):
    return f"{title}\n\n{content}"


def share_links(title, content, page_url=''):
    """Share targets for a saved document, keyed by platform name."""
    encoded_text = quote(share_text(title, content), safe='')
    encoded_url = quote(page_url, safe='')
    return {
        'WhatsApp': f"https://wa.me/?text={encoded_text}",
        'Facebook': f"https://www.facebook.com/sharer/sharer.php?u={encoded_url}&quote={encoded_text}",
        'Twitter': f"https://twitter.com/intent/tweet?text={encoded_text}",
        'LinkedIn': f"https://www.linkedin.com/sharing/share-offsite/?url={encoded_url}",
        'Email': f"mailto:?subject={quote(title, safe='')}&body={encoded_text}",
    }
