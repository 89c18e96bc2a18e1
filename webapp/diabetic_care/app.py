import os
import sys

import click
from flask import Flask, g, session

from diabetic_care.config.settings import Config
from diabetic_care.adapters.sqlite.core import close_connection


def create_app(test_config=None):
    """
    اپلیکیشن Flask را می‌سازد.
    برای حالت سورس و exe (PyInstaller) کار می‌کند.
    """

    # --------- تعیین مسیر templates برای حالت exe و سورس ---------
    if getattr(sys, "frozen", False):
        base_dir = os.path.join(sys._MEIPASS, "diabetic_care")
    else:
        base_dir = os.path.abspath(os.path.dirname(__file__))
    template_folder = os.path.join(base_dir, "templates")
    static_folder = os.path.join(base_dir, "static")

    app = Flask(__name__, template_folder=template_folder, static_folder=static_folder)

    # --------- تنظیمات کانفیگ ---------
    app.config.from_object(Config)
    if test_config is not None:
        app.config.from_mapping(test_config)

    # Use FLASK_ENV or APP_ENV to choose 'production' mode; otherwise fall back to config.
    if not app.config.get('TESTING', False):
        env_name = os.environ.get('FLASK_ENV') or os.environ.get('APP_ENV') or 'development'
        if str(env_name).lower() == 'production':
            app.config['ENV'] = 'production'
            app.config['DEBUG'] = False
            app.config['SESSION_COOKIE_SECURE'] = True
            app.jinja_env.auto_reload = False
            if app.config['SECRET_KEY'] == Config.SECRET_KEY and 'SECRET_KEY' not in os.environ:
                print("[startup] WARNING: running in production with the default SECRET_KEY")
        else:
            app.config['ENV'] = 'development'
            app.config['DEBUG'] = bool(app.config.get('DEBUG', False))
            app.jinja_env.auto_reload = app.config['DEBUG']

        print(f"[startup] Using database: {app.config['DATABASE_PATH']}")
        print(f"[startup] Upload folder: {app.config['UPLOAD_FOLDER']}")

    # --------- Teardown دیتابیس ---------
    app.teardown_appcontext(close_connection)

    # --------- دستورات CLI ---------
    from diabetic_care.adapters.sqlite.core import init_db_command
    from diabetic_care.services.auth_service import AuthService

    @app.cli.command("init-db")
    def init_db():
        init_db_command()

    @app.cli.command("set-admin-password")
    @click.argument("password")
    def set_admin_password(password):
        if len(password) < 8:
            raise click.BadParameter("password must be at least 8 characters")
        AuthService().set_password(password)
        print("Admin password updated.")

    # --------- وضعیت ورود مدیر ---------
    @app.before_request
    def load_admin_session():
        g.is_admin = bool(session.get("admin"))

    # --------- ثبت Blueprints ---------
    from diabetic_care.api.auth import bp as auth_bp
    app.register_blueprint(auth_bp)

    from diabetic_care.api.admin import bp as admin_bp
    app.register_blueprint(admin_bp)

    from diabetic_care.api.patients import bp as patients_api_bp
    app.register_blueprint(patients_api_bp)

    from diabetic_care.api.cities import bp as cities_bp
    app.register_blueprint(cities_bp)

    from diabetic_care.api.public import bp as public_bp
    app.register_blueprint(public_bp)

    # --------- فیلترهای جلالی و اعداد فارسی ---------
    from diabetic_care.common.digits import to_ascii_digits_only, to_display_digits
    from diabetic_care.common.utils import format_fa_number, format_jalali_date, format_jalali_datetime

    @app.template_filter("jalali_datetime")
    def jalali_datetime_filter(value):
        if not value:
            return ""
        return format_jalali_datetime(value)

    @app.template_filter("jalali_date")
    def jalali_date_filter(value):
        return format_jalali_date(value)

    @app.template_filter("fa_num")
    def fa_number_filter(value):
        return format_fa_number(value)

    @app.template_filter("fa_digits")
    def fa_digits_filter(value):
        """Persian digits for identifiers and phone numbers (no grouping)."""
        if value is None:
            return ""
        return to_display_digits(str(value))

    @app.template_filter("tel")
    def tel_filter(value):
        return to_ascii_digits_only(value or "")

    return app


def get_wsgi_app():
    """Get WSGI app for production servers like Gunicorn."""
    return create_app()


if __name__ == "__main__":
    application = create_app()
    port = int(os.environ.get('PORT', 8080))
    application.run(debug=False, host="0.0.0.0", port=port, use_reloader=False)
