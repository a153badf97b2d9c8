"""
app.py
------

Flask surface of the REG journal. ``create_app`` builds one in-memory
``Journal`` (with its AI coach, when an API key is configured) and wires
the single dashboard page, the edit/delete flows, the period filter, the
language switch, CSV import/export and two JSON endpoints to it.

``reg-journal`` (or ``python -m regjournal.app``) serves it on
``$PORT`` (default 5004). Journal state lives in the process, so run a
single worker.
"""
import os

from flask import (
    Flask, render_template, request, redirect, url_for,
    flash, jsonify, Response, abort
)
from werkzeug.utils import secure_filename

from .analytics import PERIODS, utc_today
from .charts import bar_chart, line_chart
from .coach import Coach, CoachClient, DEFAULT_MODEL, DEFAULT_TIMEOUT, thread_dispatch
from .csv_io import CSVImportError, decode_upload
from .i18n import DEFAULT_LANGUAGE, side_labels, translations
from .journal import Journal
from .numbers import format_currency, format_date_br, format_decimal

CSV_SUFFIX = ".csv"


def is_csv_upload(filename: str) -> bool:
    return os.path.splitext(secure_filename(filename or ""))[1].lower() == CSV_SUFFIX


def form_choices(tags, current=None):
    """Tag list for the form, with the edited record's own tag kept selectable."""
    choices = list(tags)
    if current is not None and current not in choices:
        choices.append(current)
    return choices


def _build_coach(config) -> Coach:
    client = config.get("COACH_CLIENT")
    if client is None and config.get("GEMINI_API_KEY"):
        client = CoachClient(
            api_key=config["GEMINI_API_KEY"],
            model=config["COACH_MODEL"],
            timeout=config["COACH_TIMEOUT"],
        )
    return Coach(client=client, dispatch=config.get("COACH_DISPATCH") or thread_dispatch)


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_mapping(
        SECRET_KEY=os.getenv("SECRET_KEY", "dev-secret"),
        GEMINI_API_KEY=os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY"),
        COACH_MODEL=os.getenv("COACH_MODEL", DEFAULT_MODEL),
        COACH_TIMEOUT=float(os.getenv("COACH_TIMEOUT", DEFAULT_TIMEOUT)),
        JOURNAL_LANGUAGE=os.getenv("JOURNAL_LANGUAGE", DEFAULT_LANGUAGE),
    )
    if test_config:
        app.config.update(test_config)

    journal = Journal(
        coach=_build_coach(app.config),
        language=app.config["JOURNAL_LANGUAGE"],
        today=app.config.get("JOURNAL_TODAY") or utc_today,
    )
    app.extensions["journal"] = journal
    if not journal.coach.enabled:
        app.logger.info("GEMINI_API_KEY not set; AI coaching disabled")

    @app.template_filter("currency")
    def _currency(value):
        return format_currency(value, journal.language)

    @app.template_filter("decimal")
    def _decimal(value, max_fraction=3, min_fraction=0):
        return format_decimal(value, journal.language, max_fraction, min_fraction)

    app.add_template_filter(format_date_br, "date_br")

    # ---------- routes ----------
    @app.route("/")
    def index():
        snap = journal.snapshot()
        t = translations(snap.language)
        editing = None
        edit_id = request.args.get("edit", type=int)
        if edit_id is not None:
            try:
                editing = journal.get(edit_id)
            except KeyError:
                abort(404)
        charts = {
            "cumulative": line_chart(snap.cumulative, t["cumulative_result"]),
            "trigger": bar_chart(snap.breakdowns["by_trigger"], t["trigger_performance"], snap.language),
            "region": bar_chart(snap.breakdowns["by_region"], t["region_performance"], snap.language),
            "side": bar_chart(
                snap.breakdowns["by_side"], t["side_performance"], snap.language,
                labels=side_labels(snap.language),
            ),
        }
        return render_template(
            "index.html",
            title=t["title"],
            t=t,
            snap=snap,
            editing=editing,
            charts=charts,
            periods=PERIODS,
            feedback=journal.coach.panel.to_dict(),
            today=journal.today().isoformat(),
            region_choices=form_choices(snap.regions, (editing.region or None) if editing else None),
            trigger_choices=form_choices(snap.triggers, editing.trigger if editing else None),
        )

    @app.route("/add", methods=["POST"])
    def add_operation():
        journal.add_operation(request.form)
        return redirect(url_for("index"))

    @app.route("/update/<int:op_id>", methods=["POST"])
    def update_operation(op_id):
        try:
            journal.update_operation(op_id, request.form)
        except KeyError:
            abort(404)
        return redirect(url_for("index"))

    @app.route("/delete/<int:op_id>", methods=["GET", "POST"])
    def delete_operation(op_id):
        try:
            op = journal.get(op_id)
        except KeyError:
            abort(404)
        if request.method == "POST":
            journal.delete_operation(op_id)
            return redirect(url_for("index"))
        t = translations(journal.language)
        message = t["delete_confirm_message"].format(op_number=op.op_number, asset=op.asset)
        return render_template("confirm_delete.html", title=t["delete_confirm_title"], t=t, op=op, message=message)

    @app.route("/filter/<period>")
    def set_filter(period):
        try:
            journal.set_filter(period)
        except ValueError:
            abort(404)
        return redirect(url_for("index"))

    @app.route("/language", methods=["POST"])
    def toggle_language():
        journal.toggle_language()
        return redirect(url_for("index"))

    @app.route("/export", methods=["GET"], endpoint="export")
    def export_operations():
        filename, content = journal.export_csv()
        return Response(
            content,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/import", methods=["POST"])
    def import_operations():
        t = translations(journal.language)
        f = request.files.get("file")
        if not f or not is_csv_upload(f.filename):
            flash(t["import_error"].format(error="Only .csv files are supported."), "error")
            return redirect(url_for("index"))

        try:
            count = journal.import_csv(decode_upload(f.read()))
        except CSVImportError as e:
            app.logger.warning("CSV import of %s failed: %s", f.filename, e)
            flash(t["import_error"].format(error=e), "error")
            return redirect(url_for("index"))
        flash(t["import_success"].format(count=count), "success")
        return redirect(url_for("index"))

    @app.route("/feedback/close", methods=["POST"])
    def close_feedback():
        journal.coach.panel.close()
        return redirect(url_for("index"))

    @app.route("/api/snapshot")
    def api_snapshot():
        return jsonify(journal.snapshot().to_dict())

    @app.route("/api/feedback")
    def api_feedback():
        return jsonify(journal.coach.panel.to_dict())

    return app


def main():
    app = create_app()
    app.run(
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "5004")),
        debug=os.getenv("FLASK_DEBUG") == "1",
        use_reloader=False,
    )


if __name__ == "__main__":
    main()
