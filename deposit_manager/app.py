from flask import Flask, request, jsonify, Response, stream_with_context
from flask_cors import CORS
import json
import logging
import traceback

from deposit_manager.etl.config import Config
from deposit_manager.etl.formatting import format_currency, format_date, parse_date_input
from deposit_manager.etl.pipeline import ReportBook, ReportPipeline, drain, to_json
from deposit_manager.etl.schema import ReportType

# Setup Logging
logging.basicConfig(
    filename=Config.LOG_FILE,
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s'
)
logging.info("Server starting up...")


app = Flask(__name__)
CORS(app, resources={r"/*": {"origins": Config.CORS_ORIGINS}})
# Keep result key order (locale-sorted payment methods)
app.json.sort_keys = False

# One pipeline and one result book per process; each upload replaces its own report only
report_pipeline = ReportPipeline()
report_book = ReportBook(report_pipeline)

REPORT_TYPES = {t.value for t in ReportType}


def _deposit_payload(view):
    payload = to_json(view)
    for row, record in zip(payload["records"], view["records"]):
        row["expiration_display"] = format_date(record.expiration_date)
    payload["window_display"] = f"{format_date(view['start'])} - {format_date(view['end'])}"
    return payload


def _summary_payload(result):
    payload = to_json(result)
    totals = payload.get("totals")
    if totals:
        payload["totals_display"] = {
            k: format_currency(v) for k, v in totals.items() if isinstance(v, (int, float))
        }
    return payload


@app.route('/health', methods=['GET'])
def health():
    return jsonify({"status": "ok", "reports": sorted(t.value for t in report_book.results)})


@app.route('/reports/<report_type>/upload', methods=['POST'])
def upload_report(report_type):
    if report_type not in REPORT_TYPES:
        return jsonify({"error": f"Unknown report type: {report_type}"}), 404

    if 'file' not in request.files:
        return jsonify({"error": "No file part"}), 400

    file = request.files['file']
    if file.filename == '':
        return jsonify({"error": "No selected file"}), 400

    file_ext = file.filename.rsplit('.', 1)[-1].lower() if '.' in file.filename else ''
    if file_ext not in Config.ALLOWED_EXTENSIONS:
        return jsonify({"error": f"Unsupported file type: .{file_ext}"}), 400

    # ─── Size Validation (read the whole blob now, while the request is open) ───
    blob = file.read()
    file_size_mb = len(blob) / (1024 * 1024)
    if file_size_mb > Config.MAX_UPLOAD_MB:
        return jsonify({
            "status": "failed",
            "error": f"File too large ({file_size_mb:.1f}MB). Max is {Config.MAX_UPLOAD_MB:g}MB."
        }), 400

    filename = file.filename
    window_start = parse_date_input(request.form.get('start'))

    steps = report_pipeline.process(blob, report_type, file_ext, source_file=filename)
    outcome = {}

    def settle(result):
        outcome["result"] = result
        if report_book.publish(result):
            logging.info(
                f"Published {report_type} report from {filename}: "
                f"{result['stats'].get('retained_rows')} of {result['stats'].get('total_rows')} rows"
            )

    def settle_if_abandoned():
        # The client stopped reading before the final frame: finish the run and store it anyway
        if "result" not in outcome:
            settle(drain(steps))

    def generate():
        yield json.dumps({"p": 5, "status": "Initializing..."}) + "\n"

        try:
            for p, msg, res in steps:
                if res:
                    settle(res)
                else:
                    yield json.dumps({"p": p, "status": msg}) + "\n"

            final_result = outcome.get("result")
            if not final_result or not final_result["success"]:
                error_msg = final_result.get("error", "Unknown pipeline error") if final_result else "Pipeline failed"
                yield json.dumps({"status": "failed", "report_type": report_type, "error": error_msg}) + "\n"
                return

            if report_type == ReportType.DEPOSIT.value:
                body = _deposit_payload(report_book.deposit_view(window_start))
            else:
                body = _summary_payload(final_result)

            yield json.dumps({
                "status": "success",
                "report_type": report_type,
                "stats": to_json(final_result["stats"]),
                "result": body,
            }) + "\n"

        except Exception as e:
            logging.error(f"Streaming Error: {traceback.format_exc()}")
            yield json.dumps({"status": "failed", "report_type": report_type, "error": str(e)}) + "\n"

    response = Response(stream_with_context(generate()), mimetype='application/x-ndjson')
    response.call_on_close(settle_if_abandoned)
    return response


@app.route('/reports/<report_type>', methods=['GET'])
def get_report(report_type):
    if report_type not in REPORT_TYPES:
        return jsonify({"error": f"Unknown report type: {report_type}"}), 404

    result = report_book.get(report_type)
    if result is None:
        return jsonify({"error": "No report uploaded yet"}), 404

    if report_type == ReportType.DEPOSIT.value:
        raw_start = request.args.get('start')
        start = parse_date_input(raw_start)
        if raw_start and start is None:
            return jsonify({"error": "start must be a date in YYYY-MM-DD format"}), 400
        return jsonify(_deposit_payload(report_book.deposit_view(start)))

    return jsonify(_summary_payload(result))


if __name__ == '__main__':
    app.run(host='0.0.0.0', port=Config.PORT, debug=False)
