import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or (
        'dev-secret-key-change-in-production'
    )
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or (
        'sqlite:///trynex.db'
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Admin bearer tokens
    ADMIN_TOKEN_EXPIRE_HOURS = int(
        os.environ.get('ADMIN_TOKEN_EXPIRE_HOURS', '24'))
    DEFAULT_ADMIN_EMAIL = os.environ.get(
        'DEFAULT_ADMIN_EMAIL', 'admin@trynex.com')
    DEFAULT_ADMIN_PASSWORD = os.environ.get(
        'DEFAULT_ADMIN_PASSWORD', 'admin123')

    # Delivery fees (BDT). Free delivery at or above the threshold.
    FREE_DELIVERY_THRESHOLD = int(
        os.environ.get('FREE_DELIVERY_THRESHOLD', '2000'))
    DHAKA_DELIVERY_FEE = int(os.environ.get('DHAKA_DELIVERY_FEE', '80'))
    OUTSIDE_DHAKA_DELIVERY_FEE = int(
        os.environ.get('OUTSIDE_DHAKA_DELIVERY_FEE', '120'))

    # Merchant wallets customers send money to.
    BKASH_NUMBER = os.environ.get('BKASH_NUMBER', '01747292277')
    NAGAD_NUMBER = os.environ.get('NAGAD_NUMBER', '01747292277')
    ROCKET_NUMBER = os.environ.get('ROCKET_NUMBER', '')

    # Pagination configuration
    ITEMS_PER_PAGE = 20
    MAX_ITEMS_PER_PAGE = 100

    # Uploads (payment screenshots, product images) under static/
    MAX_CONTENT_LENGTH = 5 * 1024 * 1024
    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER', 'uploads')


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
