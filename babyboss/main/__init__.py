from flask import Blueprint
from datetime import datetime

bp = Blueprint('main', __name__)


# This function makes the 'now' object available in all templates
@bp.app_context_processor
def inject_now():
    return {'now': datetime.now()}


# Import routes, filters, and forms at the bottom
from babyboss.main import routes, filters, forms
