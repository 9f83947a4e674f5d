import atexit
import logging
import os

from dotenv import load_dotenv
from flask import Flask, g, jsonify, render_template, request

# Import models first so every module's tables are registered on Base.metadata.
from app.wildlife import models  # noqa: F401
from app.wildlife.activity import log_page_view
from app.wildlife.cache import close_cache, init_cache
from app.wildlife.config import is_production, load_config
from app.wildlife.db import dispose_db, init_db, teardown_db_session
from app.wildlife.sessions import init_sessions
from app.wildlife.routes import bp as routes_bp
from app.wildlife.auth import bp as auth_bp, load_current_user
from app.wildlife.admin import bp as admin_bp
from app.wildlife.modules.accounts.admin import bp as admin_users_bp
from app.wildlife.modules.catalog.admin import bp as admin_catalog_bp
from app.wildlife.modules.catalog.views import bp as gallery_bp
from app.wildlife.modules.chat.views import bp as chat_bp
from app.wildlife.modules.feedback.views import bp as feedback_bp
from app.wildlife.modules.images.views import bp as images_bp

_UNTRACKED_PREFIXES = ("/static/", "/health", "/images/")


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__, template_folder="templates", static_folder="static")
    app.config.from_mapping(load_config())
    app.config["SESSION_REFRESH_EACH_REQUEST"] = True

    if is_production(app.config.get("ENV")):
        from werkzeug.middleware.proxy_fix import ProxyFix

        # Behind one load balancer hop: trust its X-Forwarded-* headers.
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)  # type: ignore[method-assign]
    elif app.config.get("SECRET_KEY_IS_DEFAULT"):
        app.logger.warning("SECRET_KEY not set; using an insecure development key")

    # CSRF protection (session token)
    from app.wildlife.security import ensure_csrf_token, validate_csrf

    @app.context_processor
    def _inject_csrf() -> dict:
        return {"csrf_token": ensure_csrf_token()}

    @app.context_processor
    def _inject_user() -> dict:
        return {"current_user": getattr(g, "current_user", None)}

    @app.template_filter("dateformat")
    def _dateformat_filter(value, format: str = "%Y-%m-%d %H:%M") -> str:
        if value is None:
            return "-"
        if hasattr(value, "strftime"):
            return value.strftime(format)
        return str(value)

    @app.before_request
    def _csrf_guard():
        if request.path.startswith(_UNTRACKED_PREFIXES):
            return None
        if request.method in ("POST", "PUT", "PATCH", "DELETE"):
            if not app.config.get("CSRF_ENABLED", True):
                return None
            # Login/register forms are reachable before a session exists.
            if (request.endpoint or "").startswith("auth."):
                return None
            if not validate_csrf(request):
                app.logger.warning("CSRF rejected (path=%s)", request.path)
                if request.is_json:
                    return jsonify({"error": "CSRF token missing or invalid."}), 400
                return render_template("errors/400.html", message="CSRF token missing or invalid."), 400
        return None

    init_db(app)
    redis = init_cache(app)
    init_sessions(app, redis)

    def _dispose_engine_on_fork() -> None:
        if hasattr(os, "register_at_fork"):
            def _after_fork_child():
                engine = app.extensions.get("sqlalchemy_engine")
                if engine:
                    engine.dispose(close=False)
                    app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

            os.register_at_fork(after_in_child=_after_fork_child)

    _dispose_engine_on_fork()

    def _shutdown() -> None:
        close_cache(app)
        dispose_db(app)

    atexit.register(_shutdown)

    app.register_blueprint(routes_bp)
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(gallery_bp, url_prefix="/gallery")
    app.register_blueprint(feedback_bp, url_prefix="/feedback")
    app.register_blueprint(chat_bp, url_prefix="/chat")
    app.register_blueprint(images_bp, url_prefix="/images")
    app.register_blueprint(admin_bp, url_prefix="/admin")
    app.register_blueprint(admin_users_bp, url_prefix="/admin")
    app.register_blueprint(admin_catalog_bp, url_prefix="/admin")

    def _load_user_wrapper():
        if request.path.startswith(_UNTRACKED_PREFIXES):
            g.current_user = None
            return None
        return load_current_user()

    app.before_request(_load_user_wrapper)

    @app.after_request
    def _track_page_view(response):
        if response.status_code < 400:
            log_page_view()
        return response

    app.teardown_appcontext(teardown_db_session)

    def _wants_json() -> bool:
        return request.is_json or "/api/" in request.path

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        if _wants_json():
            return jsonify({"error": "Server error"}), 500
        return render_template("errors/500.html"), 500

    @app.errorhandler(403)
    def _err_403(e):  # type: ignore[no-redef]
        if _wants_json():
            return jsonify({"error": "Forbidden"}), 403
        return render_template("errors/403.html"), 403

    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        if _wants_json():
            return jsonify({"error": "Not found"}), 404
        return render_template("errors/404.html"), 404

    @app.errorhandler(413)
    def _err_413(e):  # type: ignore[no-redef]
        from flask import flash, redirect, url_for

        flash("File too large. Maximum size is 10MB.", "danger")
        referrer = request.referrer
        if referrer and referrer.startswith(request.host_url):
            return redirect(referrer), 302
        return redirect(url_for("admin_catalog.creatures_list")), 302

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
