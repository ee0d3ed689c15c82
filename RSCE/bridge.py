# =============================================================================
# bridge.py — RSCE HTTP Bridge (Flask)
# =============================================================================
#
# Thin HTTP layer over the codec.  No codec logic lives here: every request
# is one call into RSCE.SGM / RSCE.SVM with the upload held in memory.
#
# Routes:
#   GET  /health        → {"ok": true}
#   POST /api/encode    multipart field `image` → audio/wav  (output.wav)
#   POST /api/decode    multipart field `audio` → image/png  (decoded_sstv.png)
#                       X-SSTV-Sync-Count / X-SSTV-Fallback carry diagnostics
#
# Errors are JSON {"error": "..."}:
#   400  missing upload field, unreadable WAV or image
#   413  upload larger than MAX_CONTENT_LENGTH (Flask)
#   500  anything else (logged with traceback)
#
# Launch with tools/py_bridge_server.py, or any WSGI server pointed at
# RSCE.bridge:create_app().
# =============================================================================

from __future__ import annotations
import io
import logging
import os

from flask import Flask, jsonify, request, send_file

from RSCE.SGM.frame_builder import encode_rgb_to_wav
from RSCE.SIO.image_io import ImageFormatError, encode_gray, load_rgb
from RSCE.SIO.wav_container import WavFormatError
from RSCE.SVM.scan_decoder import decode_wav_bytes

log = logging.getLogger(__name__)

DEFAULT_MAX_UPLOAD_MB = 64


def _max_upload_bytes() -> int:
    mb = int(os.environ.get("RSCE_MAX_UPLOAD_MB", DEFAULT_MAX_UPLOAD_MB))
    return mb * 1024 * 1024


def _error(message: str, status: int):
    return jsonify({"error": message}), status


def create_app(config: dict | None = None) -> Flask:
    """
    Build the bridge application.

    `config` is applied on top of the defaults, e.g. {"TESTING": True}.
    """
    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = _max_upload_bytes()
    if config:
        app.config.update(config)

    @app.after_request
    def allow_any_origin(response):
        response.headers["Access-Control-Allow-Origin"] = "*"
        return response

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"ok": True})

    # ── Encode ───────────────────────────────────────────────────────────────

    @app.route("/api/encode", methods=["POST"])
    def encode():
        upload = request.files.get("image")
        if upload is None:
            return _error("Missing image file", 400)

        try:
            rgb = load_rgb(upload.read())
            wav = encode_rgb_to_wav(rgb)
        except ImageFormatError as e:
            log.info("encode rejected: %s", e)
            return _error(str(e), 400)
        except Exception as e:
            log.exception("ENCODE ERROR")
            return _error(str(e), 500)

        log.info("encoded %s → %d WAV bytes", upload.filename or "<upload>", len(wav))
        return send_file(
            io.BytesIO(wav),
            mimetype="audio/wav",
            as_attachment=True,
            download_name="output.wav",
        )

    # ── Decode ───────────────────────────────────────────────────────────────

    @app.route("/api/decode", methods=["POST"])
    def decode():
        upload = request.files.get("audio")
        if upload is None:
            return _error("Missing audio file (wav)", 400)

        try:
            result = decode_wav_bytes(upload.read())
            png = encode_gray(result.image)
        except WavFormatError as e:
            log.info("decode rejected: %s", e)
            return _error(str(e), 400)
        except Exception as e:
            log.exception("DECODE ERROR")
            return _error(str(e), 500)

        report = result.report
        log.info(
            "decoded %s: %d sync pulses, %d lines%s",
            upload.filename or "<upload>", report.sync_count, report.lines_decoded,
            " (fixed timing)" if report.fallback else "",
        )
        response = send_file(
            io.BytesIO(png),
            mimetype="image/png",
            as_attachment=True,
            download_name="decoded_sstv.png",
        )
        response.headers["X-SSTV-Sync-Count"] = str(report.sync_count)
        response.headers["X-SSTV-Fallback"]   = "1" if report.fallback else "0"
        return response

    return app
