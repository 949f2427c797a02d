# penwise/blueprints/main.py
from flask import Blueprint, current_app, jsonify
from flask_login import current_user, login_required
from penwise.errors import NotFound
from penwise.prompts import get_registry, missing_required_fields
from penwise.schemas import DetailsCheckRequest, PurchaseRequest, parse_body

main_bp = Blueprint('main', __name__)

CREDIT_PACKAGES = [
    {
        'id': 'starter',
        'name': 'Starter Pack',
        'credits': 50,
        'price': 9.99,
        'popular': False,
        'features': ['50 AI generations', 'All content types', 'Basic templates', 'Email support'],
    },
    {
        'id': 'pro',
        'name': 'Pro Pack',
        'credits': 150,
        'price': 24.99,
        'popular': True,
        'features': ['150 AI generations', 'All content types', 'Premium templates',
                     'Priority support', 'Save 17% vs Starter'],
    },
    {
        'id': 'unlimited',
        'name': 'Ultimate Pack',
        'credits': 500,
        'price': 79.99,
        'popular': False,
        'features': ['500 AI generations', 'All content types', 'Exclusive templates',
                     '24/7 Priority support', 'Save 33% vs Starter'],
    },
]


def find_package(package_id):
    return next((p for p in CREDIT_PACKAGES if p['id'] == package_id), None)


@main_bp.route('/')
def home():
    return jsonify({'name': 'penwise', 'status': 'ok'})


@main_bp.route('/content-types')
def content_types():
    return jsonify([ct.to_dict() for ct in get_registry().list_all()])


@main_bp.route('/account')
@login_required
def account():
    profile = current_user.profile
    return jsonify({'email': current_user.email, 'credits': profile.credits, 'plan': profile.plan})


@main_bp.route('/pricing')
def pricing():
    return jsonify(CREDIT_PACKAGES)


@main_bp.route('/pricing/purchase', methods=['POST'])
@login_required
def purchase():
    # Placeholder until a payment provider is wired in: credits are granted directly.
    body = parse_body(PurchaseRequest)
    package = find_package(body.packageId)
    if package is None:
        raise NotFound('Unknown credit package')
    ledger = current_app.extensions['penwise.ledger']
    credits = ledger.add_credits(current_user.id, package['credits'])
    return jsonify({'package': package['id'], 'added': package['credits'], 'credits': credits})


@main_bp.route('/content-types/<tag>/missing-fields', methods=['POST'])
def missing_fields(tag):
    if get_registry().get(tag) is None:
        raise NotFound('Unknown content type')
    body = parse_body(DetailsCheckRequest)
    return jsonify({'contentType': tag, 'missing': missing_required_fields(tag, body.userDetails)})
