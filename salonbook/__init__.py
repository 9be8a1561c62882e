from flask import Flask
from flask_cors import CORS

from .config import Config
from .extensions import db, enable_sqlite_foreign_keys
from .routes import register_routes


def create_app(config_object=None):
    app = Flask(__name__, instance_relative_config=True)

    app.config.from_object(Config)
    if config_object:
        app.config.from_object(config_object)
    else:
        app.config.from_envvar("APP_SETTINGS", silent=True)

    db.init_app(app)
    with app.app_context():
        enable_sqlite_foreign_keys(db.engine)

    # Browser clients send the bearer token in the Authorization header.
    CORS(app,
         origins=app.config["CORS_ORIGINS"],
         allow_headers=["Content-Type", "Authorization"],
         methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    )

    register_routes(app)

    return app
