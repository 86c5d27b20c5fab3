import logging

from flask import Flask, jsonify
from flask_cors import CORS

from splitledger.config import Config
from splitledger.errors import LedgerError
from splitledger.extensions import init_store


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Disable strict slashes to prevent 308 redirects that break CORS preflight
    app.url_map.strict_slashes = False

    logging.getLogger("splitledger").setLevel(app.config["LOG_LEVEL"])

    # Allow the front end to talk to Flask
    CORS(
        app,
        supports_credentials=True,
        resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}}
    )
    init_store(app)

    from splitledger.groups.routes import groups_bp
    from splitledger.wallets.routes import wallets_bp

    app.register_blueprint(groups_bp, url_prefix='/api/v1/groups')
    app.register_blueprint(wallets_bp, url_prefix='/api/v1/wallets')

    @app.errorhandler(LedgerError)
    def handle_ledger_error(error):
        return jsonify(error.to_dict()), error.status

    @app.route("/health", methods=["GET"])
    def health_check():
        return jsonify({"status": "healthy"})

    return app
