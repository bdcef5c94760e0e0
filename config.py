# ==============================================================================
# config.py
# ------------------------------------------------------------------------------
# Configuration settings for the Flask application.
# Uses environment variables for sensitive data to keep them out of version control.
# ==============================================================================

import os
from dotenv import load_dotenv

# Determine the absolute path of the project directory
basedir = os.path.abspath(os.path.dirname(__file__))

# Load environment variables from a .env file located in the project root
load_dotenv(os.path.join(basedir, '.env'))


def _env_flag(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """
    Base configuration class. Contains default settings that can be overridden
    by environment-specific configurations.
    """
    # --- Security ---
    # Signs the login session cookie and the CSRF tokens of every form.
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-should-really-set-a-secret-key-in-your-env-file'

    # --- Database Configuration ---
    # The three record collections are kept as JSON blobs in this database.
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'instance/app.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # --- Spreadsheet Sync ---
    # Web App URL of the Google Apps Script deployment backing the sheets.
    # When empty, records are only stored locally.
    SHEET_API_URL = os.environ.get('SHEET_API_URL') or ''
    SHEET_TIMEOUT = float(os.environ.get('SHEET_TIMEOUT') or 15)
    # Pushes run on a background worker unless this is turned off (tests).
    SHEET_SYNC_ASYNC = _env_flag('SHEET_SYNC_ASYNC', True)

    # --- PDF Export ---
    WKHTMLTOPDF_PATH = os.environ.get('WKHTMLTOPDF_PATH') or None

    # --- Company details printed on order documents ---
    COMPANY_NAME = 'CÔNG TY CỔ PHẦN ĐẦU TƯ BABY BOSS'
    COMPANY_TAX_CODE = '0316366057'
    COMPANY_ADDRESS = ('Tầng 14, Toà nhà HM Town, 412, Nguyễn Thị Minh Khai, '
                       'phường Bàn Cờ, Thành phố Hồ Chí Minh.')
    COMPANY_HOTLINE = '1900 99 88 80'
    COMPANY_WEBSITE = 'www.babyboss.com.vn'
    BANK_ACCOUNT_NUMBER = '112568'
    BANK_ACCOUNT_HOLDER = 'CONG TY CO PHAN DAU TU BABY BOSS'
    BANK_NAME = 'EXIMBANK'
