import os
from dataclasses import replace
from datetime import datetime, timezone

from dotenv import load_dotenv
from flask import Flask, jsonify, request
from flask_migrate import Migrate

load_dotenv()

from models import db, Activity
from models.activity import DEFAULT_COLOR
from services.activity_config import COLOR_OPTIONS, MAX_RATIO, MIN_RATIO
from services.errors import NotFound, StaleCollection
from services.history import activity_for_log, day_label, group_logs_by_day, search_logs
from services.store import load_tracker, locked_tracker, seed_default_activities

migrate = Migrate()


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "t", "yes")


def create_app(test_config=None):
    app = Flask(__name__)

    database_url = os.environ.get("DATABASE_URL", "sqlite:///ratio_tracker.db")
    # Hosted Postgres often hands out postgres:// but SQLAlchemy needs postgresql://
    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)

    app.config["SQLALCHEMY_DATABASE_URI"] = database_url
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["SEED_DEFAULT_ACTIVITIES"] = _env_flag("SEED_DEFAULT_ACTIVITIES", True)
    app.config["RECENT_LOGS_LIMIT"] = int(os.environ.get("RECENT_LOGS_LIMIT", "50"))

    if test_config:
        app.config.update(test_config)

    db.init_app(app)
    migrate.init_app(app, db)

    with app.app_context():
        db.create_all()
        if app.config["SEED_DEFAULT_ACTIVITIES"]:
            seed_default_activities()

    _register_routes(app)
    return app


def _parse_ratio(raw):
    """Ratios from the API must be whole numbers in the offered range."""
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValueError("Ratio must be a whole number")
    if not MIN_RATIO <= raw <= MAX_RATIO:
        raise ValueError(f"Ratio must be between {MIN_RATIO} and {MAX_RATIO} (got {raw})")
    return raw


def _json_object():
    """The request's JSON body if it is an object, else None."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    return data if isinstance(data, dict) else None


def _log_to_dict(log, activities):
    activity = activity_for_log(activities, log)
    data = log.to_dict()
    data["color"] = activity.color if activity else None
    return data


def _register_routes(app):

    @app.errorhandler(NotFound)
    def handle_not_found(e):
        return jsonify({"error": str(e)}), 404

    @app.errorhandler(StaleCollection)
    def handle_stale(e):
        return jsonify({"error": str(e)}), 409

    # ── Activities ───────────────────────────────────────────────────────

    @app.route("/api/activities")
    def list_activities():
        """Return activities in display order."""
        tracker = load_tracker()
        return jsonify([a.to_dict() for a in tracker.activities])

    @app.route("/api/activities", methods=["POST"])
    def add_activity():
        """Add a new activity with a ratio and colour."""
        data = _json_object()
        if data is None:
            return jsonify({"error": "Request body must be a JSON object"}), 400
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            return jsonify({"error": "Activity name is required"}), 400

        try:
            activity = Activity(
                name=name.strip(),
                ratio=_parse_ratio(data.get("ratio", MIN_RATIO)),
                color=data.get("color", DEFAULT_COLOR),
            )
            with locked_tracker() as tracker:
                tracker.add_activity(activity)
        except ValueError as e:
            return jsonify({"error": str(e)}), 400

        return jsonify(activity.to_dict()), 201

    @app.route("/api/activities/<activity_id>", methods=["PUT"])
    def update_activity(activity_id):
        """Update an activity's name, ratio or colour. Renaming orphans its past logs."""
        data = _json_object()
        if data is None:
            return jsonify({"error": "Request body must be a JSON object"}), 400

        changes = {}
        if "name" in data:
            name = data["name"]
            changes["name"] = name.strip() if isinstance(name, str) else name
        if "color" in data:
            changes["color"] = data["color"]

        try:
            if "ratio" in data:
                changes["ratio"] = _parse_ratio(data["ratio"])
            with locked_tracker() as tracker:
                current = tracker.find_activity(activity_id)
                updated = tracker.update_activity(replace(current, **changes))
        except ValueError as e:
            return jsonify({"error": str(e)}), 400

        return jsonify(updated.to_dict())

    @app.route("/api/activities/<activity_id>", methods=["DELETE"])
    def remove_activity(activity_id):
        """Delete an activity along with every log recorded under its name."""
        with locked_tracker() as tracker:
            before = tracker.total_logs
            removed = tracker.remove_activity(activity_id)
        return jsonify({
            "message": f"Removed {removed.name}",
            "logs_removed": before - tracker.total_logs,
        })

    @app.route("/api/colors")
    def list_colors():
        return jsonify({"options": COLOR_OPTIONS, "default": DEFAULT_COLOR})

    # ── Ratios ───────────────────────────────────────────────────────────

    @app.route("/api/counts")
    def get_counts():
        """Return each activity's count, target and share of all logs."""
        tracker = load_tracker()
        return jsonify({
            "total_logs": tracker.total_logs,
            "counts": [c.to_dict() for c in tracker.get_activity_counts()],
        })

    @app.route("/api/suggestion")
    def get_suggestion():
        """Return the activity furthest behind its target, if any."""
        tracker = load_tracker()
        suggested = tracker.get_suggested_activity()
        return jsonify({
            "activity": suggested.to_dict() if suggested else None,
            "balanced": tracker.is_balanced(),
        })

    # ── Logs ─────────────────────────────────────────────────────────────

    @app.route("/api/logs")
    def list_logs():
        """Return recent logs, newest first, optionally filtered by activity name."""
        limit = request.args.get("limit", app.config["RECENT_LOGS_LIMIT"], type=int)
        tracker = load_tracker()
        logs = search_logs(tracker.get_recent_logs(limit), request.args.get("q"))
        return jsonify([_log_to_dict(log, tracker.activities) for log in logs])

    @app.route("/api/logs/by-day")
    def list_logs_by_day():
        """Return recent logs grouped into Today / Yesterday / dated sections."""
        limit = request.args.get("limit", app.config["RECENT_LOGS_LIMIT"], type=int)
        tracker = load_tracker()
        logs = search_logs(tracker.get_recent_logs(limit), request.args.get("q"))
        today = datetime.now(timezone.utc).date()

        return jsonify([
            {
                "date": day.isoformat(),
                "label": day_label(day, today),
                "logs": [_log_to_dict(log, tracker.activities) for log in day_logs],
            }
            for day, day_logs in group_logs_by_day(logs)
        ])

    @app.route("/api/logs", methods=["POST"])
    def log_activity():
        """Record that an activity was just done."""
        data = _json_object()
        if data is None:
            return jsonify({"error": "Request body must be a JSON object"}), 400
        name = data.get("activity_name")
        if not isinstance(name, str) or not name:
            return jsonify({"error": "activity_name is required"}), 400

        with locked_tracker() as tracker:
            log = tracker.log_activity(name)
        return jsonify(_log_to_dict(log, tracker.activities)), 201

    @app.route("/api/logs/<log_id>", methods=["DELETE"])
    def remove_log(log_id):
        with locked_tracker() as tracker:
            tracker.remove_log(log_id)
        return jsonify({"message": "Log removed"})

    @app.route("/api/logs", methods=["DELETE"])
    def purge_logs():
        """Delete every log but keep the activities."""
        with locked_tracker() as tracker:
            count = tracker.total_logs
            tracker.purge_all_logs()
        return jsonify({"message": f"Purged {count} logs", "count": count})


# ── Run ──────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    create_app().run(debug=True, port=5002)
