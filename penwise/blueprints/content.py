# penwise/blueprints/content.py
import logging
from datetime import datetime, timezone
from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required
from penwise import db
from penwise.errors import NotFound
from penwise.formatting import excerpt, word_count
from penwise.models import SavedContent
from penwise.prompts import get_registry
from penwise.schemas import SaveContentRequest, parse_body
from penwise.sharing import share_links

logger = logging.getLogger(__name__)

content_bp = Blueprint('content', __name__)


def default_title(content_type, now=None):
    now = now or datetime.now(timezone.utc)
    return f"{get_registry().label_for(content_type)} - {now.strftime('%Y-%m-%d')}"


def _get_owned(content_id):
    # Every lookup is scoped to the signed-in user.
    item = SavedContent.query.filter_by(id=content_id, user_id=current_user.id).first()
    if item is None:
        raise NotFound('Content not found')
    return item


def _summary(item):
    data = item.to_dict(include_content=False)
    data['excerpt'] = excerpt(item.content)
    data['word_count'] = word_count(item.content)
    return data


@content_bp.route('', methods=['GET'])
@login_required
def list_content():
    query = (SavedContent.query
             .filter_by(user_id=current_user.id)
             .order_by(SavedContent.created_at.desc(), SavedContent.id.desc()))
    limit = request.args.get('limit', type=int)
    if limit:
        query = query.limit(limit)
    return jsonify([_summary(item) for item in query.all()])


@content_bp.route('', methods=['POST'])
@login_required
def save_content():
    body = parse_body(SaveContentRequest)
    item = SavedContent(
        user_id=current_user.id,
        title=(body.title or '').strip() or default_title(body.contentType),
        content=body.content,
        content_type=body.contentType,
        tone=body.tone,
        style=body.style,
    )
    db.session.add(item)
    db.session.commit()
    logger.info(f"Saved content {item.id} for user {current_user.id}")
    return jsonify(item.to_dict()), 201


@content_bp.route('/<int:content_id>', methods=['GET'])
@login_required
def get_content(content_id):
    return jsonify(_get_owned(content_id).to_dict())


@content_bp.route('/<int:content_id>', methods=['DELETE'])
@login_required
def delete_content(content_id):
    item = _get_owned(content_id)
    db.session.delete(item)
    db.session.commit()
    return jsonify({'status': 'deleted', 'id': content_id})


@content_bp.route('/<int:content_id>/share', methods=['GET'])
@login_required
def share_content(content_id):
    item = _get_owned(content_id)
    page_url = request.args.get('url', '')
    return jsonify({'title': item.title, 'links': share_links(item.title, item.content, page_url)})
