# app.py: Flask API over the line-of-sight engine
# deps: pip install flask numpy pyproj rasterio requests

from __future__ import annotations
import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from flask import Flask, jsonify, request

from .analysis import LinkAnalyzer, LinkPair, ResultLog, star_pairs
from .cache import ElevationCache
from .config import (
    CACHE_PATH,
    DEFAULT_EARTH_RADIUS_M,
    DEFAULT_K_FACTOR,
    ELEVATION_API_URL,
    ELEVATION_RASTER,
)
from .elevation import ElevationProvider, OpenElevationClient, RasterElevationClient
from .models import Coordinate

logger = logging.getLogger(__name__)


# region Request Parsing
def _model_params(data: Dict[str, Any]) -> Tuple[float, float]:
    k = data.get("kFactor", DEFAULT_K_FACTOR)
    r = data.get("earthRadius", DEFAULT_EARTH_RADIUS_M)
    try:
        k, r = float(k), float(r)
    except (TypeError, ValueError):
        raise ValueError("kFactor and earthRadius must be numbers") from None
    if not (k > 0 and r > 0):
        raise ValueError("kFactor and earthRadius must be positive")
    return k, r


def _pair(item: Any) -> LinkPair:
    if not isinstance(item, dict):
        raise ValueError("each pair must be an object with pointA and pointB")
    pid = item.get("id")
    return LinkPair(
        Coordinate.from_dict(item.get("pointA")),
        Coordinate.from_dict(item.get("pointB")),
        None if pid in (None, "") else str(pid),
    )


def _batch_pairs(data: Dict[str, Any]) -> List[LinkPair]:
    if "pairs" in data:
        items = data["pairs"]
        if not isinstance(items, list):
            raise ValueError("pairs must be a list")
        return [_pair(p) for p in items]
    targets = data.get("targets")
    if not isinstance(targets, list) or not targets:
        raise ValueError("provide pairs, or pointA with a non-empty targets list")
    return star_pairs(Coordinate.from_dict(data.get("pointA")),
                      [Coordinate.from_dict(t) for t in targets])
# endregion


def default_analyzer() -> LinkAnalyzer:
    if ELEVATION_RASTER:
        client = RasterElevationClient(ELEVATION_RASTER)
    else:
        client = OpenElevationClient()
    cache = ElevationCache.open(CACHE_PATH) if CACHE_PATH else ElevationCache()
    return LinkAnalyzer(ElevationProvider(client, cache))


def create_app(analyzer: Optional[LinkAnalyzer] = None) -> Flask:
    app = Flask(__name__)
    engine = analyzer if analyzer is not None else default_analyzer()
    results = ResultLog()
    app.config["ANALYZER"] = engine
    app.config["RESULTS"] = results

    # ======= CORS =======
    @app.after_request
    def _cors(resp):
        resp.headers["Access-Control-Allow-Origin"] = "*"
        resp.headers["Access-Control-Allow-Headers"] = "*"
        resp.headers["Access-Control-Allow-Methods"] = "GET,POST,DELETE,OPTIONS"
        return resp

    @app.errorhandler(ValueError)
    def _bad_request(e):
        # InvalidCoordinateError is a ValueError too
        logger.info("rejected %s %s: %s", request.method, request.path, e)
        return jsonify({"error": str(e)}), 400

    @app.route("/", methods=["GET"])
    def root():
        source = ELEVATION_RASTER or ELEVATION_API_URL
        return {
            "ok": True,
            "elevation_source": source,
            "endpoints": ["/los/analyze (POST JSON)", "/los/batch (POST JSON)", "/results (GET, DELETE)"],
        }

    # ======= LoS API =======
    @app.route("/los/analyze", methods=["POST"])
    def los_analyze():
        """
        JSON body:
        {
          "id": "link-1",                       // optional
          "pointA": {"lat": .., "lng": .., "name": ..},
          "pointB": {"lat": .., "lng": ..},
          "kFactor": 1.333,                     // optional
          "earthRadius": 6371000                // optional
        }
        """
        data = request.get_json(force=True, silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "JSON object body required"}), 400
        k, r = _model_params(data)
        pair = _pair(data)
        link_id = pair.id or engine.new_id()
        result = asyncio.run(engine.analyze(link_id, pair.source, pair.target, k, r))
        results.add([result])
        return jsonify(result.to_dict())

    @app.route("/los/batch", methods=["POST"])
    def los_batch():
        """
        JSON body: {"pairs": [{pointA, pointB, id?}, ...]}
               or  {"pointA": {...}, "targets": [{...}, ...]}
        plus optional kFactor / earthRadius.
        """
        data = request.get_json(force=True, silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "JSON object body required"}), 400
        k, r = _model_params(data)
        pairs = _batch_pairs(data)
        out = asyncio.run(engine.analyze_batch(pairs, k, r, on_group=results.add))
        return jsonify({"results": [x.to_dict() for x in out]})

    @app.route("/results", methods=["GET"])
    def list_results():
        return jsonify({"results": [x.to_dict() for x in results]})

    @app.route("/results", methods=["DELETE"])
    def clear_results():
        results.clear()
        return jsonify({"ok": True})

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    create_app().run(host="0.0.0.0", port=8081, threaded=True)
