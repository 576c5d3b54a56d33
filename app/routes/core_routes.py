from flask import Blueprint, jsonify

core = Blueprint("core", __name__)


@core.get("/")
def root():
    return jsonify({"service": "donation-settlement", "ok": True})


@core.get("/__ping")
def ping():
    return jsonify({"ok": True}), 200
