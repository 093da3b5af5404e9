import random

from flask import Flask, jsonify, render_template, request
from werkzeug.exceptions import HTTPException

import rotation_config as config
from doubles_scheduler import (
    PRIORITY_MODES,
    InfeasibleRound,
    InvalidInput,
    ScoringWeights,
    format_schedule,
)
from rotation_log import setup_logger
from roster import (
    DEFAULT_COURTS,
    DEFAULT_ROUNDS,
    RosterRequest,
    master_as_text,
    parse_pair_lines,
    parse_player_lines,
)

logger = setup_logger(__name__)


def scheduler_options(seed=None):
    return {
        "weights": ScoringWeights(
            fairness=config.SCHEDULER_FAIRNESS_WEIGHT,
            block_quota_enabled=config.SCHEDULER_BLOCK_QUOTA,
        ),
        "attempts": config.SCHEDULER_ATTEMPTS,
        "repeat_matchups": config.SCHEDULER_REPEAT_MATCHUPS,
        "rng": random.Random(seed),
    }


def run_request(req):
    if len(req.players) > config.MAX_PLAYERS:
        raise InvalidInput(f"at most {config.MAX_PLAYERS} players per request")
    if req.round_count > config.MAX_ROUNDS:
        raise InvalidInput(f"at most {config.MAX_ROUNDS} rounds per request")
    return req.generate(**scheduler_options(req.seed))


def create_app():
    app = Flask(__name__)

    @app.route("/", methods=["GET", "POST"])
    def index():
        form = {
            "players": master_as_text(),
            "courts": DEFAULT_COURTS,
            "rounds": DEFAULT_ROUNDS,
            "priority_mode": "none",
            "fixed_pairs": "",
            "forbidden_pairs": "",
        }
        schedule_result = None
        error = None
        if request.method == "POST":
            form.update(request.form.to_dict())
            try:
                req = RosterRequest.from_dict({
                    "players": parse_player_lines(form["players"]),
                    "courts": form["courts"],
                    "rounds": form["rounds"],
                    "priority_mode": form["priority_mode"],
                    "fixed_pairs": parse_pair_lines(form["fixed_pairs"]),
                    "forbidden_pairs": parse_pair_lines(form["forbidden_pairs"]),
                })
                schedule_result = format_schedule(run_request(req))
            except (InvalidInput, InfeasibleRound) as e:
                error = str(e)
        return render_template(
            "index.html", form=form, modes=PRIORITY_MODES,
            schedule_result=schedule_result, error=error,
        )

    @app.post("/api/schedule")
    def api_schedule():
        body = request.get_json(silent=True)
        try:
            rounds = run_request(RosterRequest.from_dict(body))
        except InvalidInput as e:
            return jsonify({"ok": False, "error": "invalid_input", "message": str(e)}), 400
        except InfeasibleRound as e:
            return jsonify({
                "ok": False, "error": "infeasible_round",
                "round": e.round_index, "message": str(e),
            }), 422
        return jsonify({"ok": True, "rounds": [r.to_dict() for r in rounds]})

    @app.get("/health")
    def health():
        return jsonify({"ok": True})

    @app.errorhandler(Exception)
    def handle_error(e):
        if isinstance(e, HTTPException):
            return e
        logger.exception("unhandled error on %s", request.path)
        return jsonify({"ok": False, "error": "internal_error"}), 500

    return app


app = create_app()

if __name__ == "__main__":
    app.run(port=config.PORT, debug=config.APP_DEBUG)
