"""
Command line entrypoint for the OSM relation resolver.

Usage:
    python main.py Tarragona
    python main.py --lat 41.1172364 --lon 1.2546057 --match any --lang es
    python main.py --features 1946346
"""
import argparse
import json
import logging
import sys

from src.geocoding.search_engine import SearchEngine
from src.models.relation import MatchMode, city_to_dict, feature_to_dict

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Resolve a place name or position into OSM relations")
    parser.add_argument("name", nargs="*", help="exact relation name")
    parser.add_argument("--lat", type=float, help="latitude of the position")
    parser.add_argument("--lon", type=float, help="longitude of the position")
    parser.add_argument("--match", choices=[m.value for m in MatchMode], default=MatchMode.BEST.value)
    parser.add_argument("--lang", help="language of the primary names (upstream default if omitted)")
    parser.add_argument("--features", type=int, metavar="RELATION_ID",
                        help="list hotels and museums inside a relation")
    args = parser.parse_args(argv)

    has_position = args.lat is not None and args.lon is not None
    if not args.name and not has_position and args.features is None:
        parser.error("either a name, --lat/--lon or --features must be given")
    return args


def main(argv=None):
    """
    Main function to run a single lookup and print the result as JSON.
    """
    args = parse_args(argv)
    engine = SearchEngine.from_env()

    try:
        if args.features is not None:
            features = engine.fetch_boundary_features(args.features)
            result = [feature_to_dict(f) for f in features]
        elif args.lat is not None and args.lon is not None:
            cities = engine.resolve_by_location(args.lat, args.lon, MatchMode(args.match), args.lang)
            result = [city_to_dict(c) for c in cities]
        else:
            cities = engine.resolve_by_name(" ".join(args.name), args.lang)
            result = [city_to_dict(c) for c in cities]

        print(json.dumps(result, indent=2, ensure_ascii=False))
        return 0
    except Exception as e:
        logger.error(f"An error occurred in the main function: {str(e)}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
