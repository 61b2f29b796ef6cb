from flask import Flask, request, jsonify
from flask_cors import CORS
from ledger_engine import InMemoryLedgerStore, LedgerProcessor
from ledger_engine.errors import AlreadyRemunerated, DuplicateCalculation, EntityNotFound
import os
import logging

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = Flask(__name__)

# Enable CORS for all routes (schedulers and the admin console call the API)
CORS(app)

# Initialize the ledger processor
processor = LedgerProcessor(InMemoryLedgerStore())


@app.route("/api", methods=["GET"])
def api_info():
    """API information endpoint"""
    return jsonify({
        "status": "ok",
        "message": "Commission & Remuneration Ledger Engine API",
        "version": "1.0",
        "endpoints": {
            "parameters": "/parameters [POST]",
            "rubrics": "/rubrics [POST]",
            "process_period": "/process_period [POST]",
            "process_remuneration": "/process_remuneration [POST]",
            "remunerate_calculation": "/remunerate_calculation [POST]",
            "simulate_commission": "/simulate_commission [POST]",
            "health": "/health [GET]"
        }
    }), 200


@app.route("/health", methods=["GET"])
def health():
    """Health check for monitoring"""
    return jsonify({"status": "healthy"}), 200


def _run(operation, name):
    """Run one engine operation on the JSON body and map engine errors to HTTP codes."""
    try:
        input_data = request.get_json(force=True, silent=True)

        if not input_data:
            return jsonify({
                "error": "No input data provided",
                "status": "failed"
            }), 400

        logger.info(f"Processing {name}")
        result = operation(input_data)
        logger.info(f"{name} processed successfully")

        return jsonify(result), 200

    except (DuplicateCalculation, AlreadyRemunerated) as e:
        logger.warning(f"Conflict: {str(e)}")
        return jsonify({
            "error": str(e),
            "status": "duplicate"
        }), 409

    except EntityNotFound as e:
        logger.error(f"Not found: {str(e)}")
        return jsonify({
            "error": str(e),
            "status": "not_found"
        }), 404

    except (ValueError, KeyError, TypeError) as e:
        # Validation errors from engine
        logger.error(f"Validation error: {str(e)}")
        return jsonify({
            "error": str(e),
            "status": "validation_failed"
        }), 400

    except Exception as e:
        # Unexpected errors
        logger.error(f"Processing error: {str(e)}", exc_info=True)
        return jsonify({
            "error": "An unexpected error occurred during processing",
            "status": "failed"
        }), 500


@app.route("/parameters", methods=["POST"])
def define_parameter():
    """Define a commission parameter for a client, collector or agency"""
    return _run(processor.define_parameter_from_dict, "parameter definition")


@app.route("/rubrics", methods=["POST"])
def define_rubric():
    """Define a remuneration rubric for one or more collectors"""
    return _run(processor.define_rubric_from_dict, "rubric definition")


@app.route("/process_period", methods=["POST"])
def process_period():
    """
    Compute client commissions and the pool S for one collector and period
    """
    return _run(processor.process_period_from_dict, "period calculation")


@app.route("/process_remuneration", methods=["POST"])
def process_remuneration():
    """Distribute a given pool S across the collector's rubrics"""
    return _run(processor.process_remuneration_from_dict, "remuneration")


@app.route("/remunerate_calculation", methods=["POST"])
def remunerate_calculation():
    """Remunerate a recorded period calculation"""
    return _run(processor.remunerate_calculation_from_dict, "calculation remuneration")


@app.route("/simulate_commission", methods=["POST"])
def simulate_commission():
    return _run(processor.simulate_commission_from_dict, "commission simulation")


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8080))
    app.run(host="0.0.0.0", port=port, debug=False)
