from flask import Flask, jsonify

from tinydb import TinyDB
from tinydb.storages import MemoryStorage

from acir_routes import acir_bp, init_acir_bp

DEFAULT_CONFIG = {
    "SECRET_KEY": "key",
    "ACIR_DB_PATH": "db.json",   # None → MemoryStorage
}


def create_db(path):
    if path is None:
        return TinyDB(storage=MemoryStorage)  # Memory DB
    return TinyDB(path)                       # Storage DB


def create_app(config=None):
    app = Flask(__name__)
    app.config.from_mapping(DEFAULT_CONFIG)
    app.config.from_prefixed_env()   # FLASK_ACIR_DB_PATH 등
    if config:
        app.config.from_mapping(config)

    db = create_db(app.config["ACIR_DB_PATH"])
    app.extensions["acir_db"] = db
    init_acir_bp(db.table("acir"))
    app.register_blueprint(acir_bp)

    @app.route("/")
    def index():
        return jsonify({
            "service": "acir-ivc",
            "endpoints": sorted(
                str(rule) for rule in app.url_map.iter_rules() if str(rule).startswith("/acir")
            ),
        })

    return app


if __name__ == "__main__":
    create_app().run(debug=True)
