"""CLIエントリーポイント"""
import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional

from .features.distance.orchestrator import DistanceOrchestrator
from .infrastructure.config.settings import Settings
from .shared.exceptions.errors import DistanceError
from .shared.logging.config import get_logger, setup_logging

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """引数パーサーを作成"""
    parser = argparse.ArgumentParser(
        prog="geodistance",
        description="住所・座標間の距離、方位、ルートを計算するツール",
    )

    parser.add_argument(
        "--env-file",
        type=str,
        default=".env",
        help="環境変数ファイルのパス（デフォルト: .env）",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="ログレベル",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    geocode = subparsers.add_parser("geocode", help="住所を座標に変換")
    geocode.add_argument("address", help="住所")

    reverse = subparsers.add_parser("reverse", help="座標を住所に変換")
    reverse.add_argument("latitude", type=float, help="緯度")
    reverse.add_argument("longitude", type=float, help="経度")

    distance = subparsers.add_parser("distance", help="2地点間の直線距離")
    distance.add_argument("origin", help='出発地（住所、または "緯度,経度"）')
    distance.add_argument("destination", help='目的地（住所、または "緯度,経度"）')
    distance.add_argument("--unit", type=str, help="距離単位 (kilometers, miles, meters, feet)")
    distance.add_argument("--vincenty", action="store_true", help="Vincenty公式で計算")

    bearing = subparsers.add_parser("bearing", help="2地点間の方位")
    bearing.add_argument("origin", help="出発地")
    bearing.add_argument("destination", help="目的地")

    route = subparsers.add_parser("route", help="道路網に沿ったルート")
    route.add_argument("origin", help="出発地")
    route.add_argument("destination", help="目的地")
    route.add_argument("--mode", type=str, help="移動手段 (driving, walking, cycling)")

    batch = subparsers.add_parser("batch", help="ファイル内の住所をまとめてジオコーディング")
    batch.add_argument("file", type=Path, help="1行1住所のテキストファイル")
    batch.add_argument("--no-progress", action="store_true", help="プログレスバーを表示しない")

    return parser


def run_command(args: argparse.Namespace, orchestrator: DistanceOrchestrator) -> Optional[Any]:
    """
    サブコマンドを実行し、JSONに変換できる結果を返す

    Raises:
        DistanceError: 計算・ジオコーディングに失敗した場合
    """
    service = orchestrator.distance_service

    if args.command == "geocode":
        return service.geocode(args.address).to_dict()

    if args.command == "reverse":
        return {
            "latitude": args.latitude,
            "longitude": args.longitude,
            "address": service.reverse(args.latitude, args.longitude),
        }

    if args.command == "distance":
        if args.vincenty:
            result = service.between_vincenty(args.origin, args.destination, args.unit)
        else:
            result = service.between(args.origin, args.destination, args.unit)
        return result.to_dict()

    if args.command == "bearing":
        bearing = service.bearing(args.origin, args.destination)
        return {
            "bearing": round(bearing, 2),
            "direction": service.calculator.compass_direction(bearing),
        }

    if args.command == "route":
        return service.route(args.origin, args.destination, args.mode).to_dict()

    if args.command == "batch":
        addresses = [line.strip() for line in args.file.read_text(encoding="utf-8").splitlines()]
        summary = orchestrator.geocoding_service.geocode_batch(addresses, show_progress=not args.no_progress)
        return {
            "results": {address: coordinate.to_dict() for address, coordinate in summary["results"].items()},
            "errors": summary["errors"],
            "success": summary["success"],
            "failure": summary["failure"],
            "total": summary["total"],
        }

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[list[str]] = None) -> int:
    """
    メインエントリーポイント

    Returns:
        int: 終了コード（0: 成功, 1: 失敗, 130: 中断）
    """
    args = build_parser().parse_args(argv)

    try:
        # 設定を読み込み
        settings = Settings(_env_file=args.env_file)

        # ログレベルを上書き
        if args.log_level:
            settings.log_level = args.log_level

        setup_logging(
            level=settings.log_level,
            enable_cloud_logging=settings.gcp_logging_enabled,
            project_id=settings.gcp_project_id,
        )

        logger.info(f"Running command: {args.command}")
        logger.info(f"Environment: {settings.environment}")

        orchestrator = DistanceOrchestrator(settings)
        try:
            output = run_command(args, orchestrator)
        finally:
            orchestrator.close()

        print(json.dumps(output, ensure_ascii=False, indent=2))
        return 0

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130  # SIGINT
    except DistanceError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    except Exception as e:
        logger.error(f"Application failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
