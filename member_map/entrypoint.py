"""CLIエントリーポイント"""
import argparse
import asyncio
import sys
from typing import Optional

from .features.batch.orchestrator import BatchOrchestrator
from .features.members.sync.member_sync import MemberSync
from .infrastructure.config.settings import Settings
from .shared.logging.config import get_logger, setup_logging

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """引数パーサーを作成"""
    parser = argparse.ArgumentParser(description="メンバーマップ用バッチツール")

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

    csv_parser = subparsers.add_parser(
        "geocode-csv", help="新規メンバーCSVをジオコーディングして既存CSVにマージ"
    )
    csv_parser.add_argument("--base", required=True, help="既存CSV（座標付き）")
    csv_parser.add_argument("--new", required=True, help="新規メンバーCSV")
    csv_parser.add_argument("--output", required=True, help="出力CSV")
    csv_parser.add_argument(
        "--cache", default=None, help="ジオコーディングキャッシュのJSONファイル"
    )

    geocode_parser = subparsers.add_parser("geocode", help="住所を1件ジオコーディング")
    geocode_parser.add_argument("address", help="住所")

    watch_parser = subparsers.add_parser("watch", help="メンバー一覧を同期し、変化を表示")
    watch_parser.add_argument(
        "--duration", type=float, default=None, help="終了までの秒数（未指定なら Ctrl+C まで）"
    )

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """
    メインエントリーポイント

    Returns:
        int: 終了コード（0: 成功, 1: 失敗）
    """
    args = build_parser().parse_args(argv)

    try:
        settings = Settings(_env_file=args.env_file)

        if args.log_level:
            settings.log_level = args.log_level

        setup_logging(
            level=settings.log_level,
            enable_cloud_logging=settings.gcp_logging_enabled,
            project_id=settings.gcp_project_id,
        )

        logger.info(f"Environment: {settings.environment}")

        orchestrator = BatchOrchestrator(settings)

        if args.command == "geocode-csv":
            result = orchestrator.run_csv_geocoding(
                base_csv=args.base,
                new_csv=args.new,
                output_csv=args.output,
                cache_file=args.cache,
            )
            print(
                f"new={result.geocoded} existing={result.existing} "
                f"failed={result.failed} total={result.total} -> {result.output_path}"
            )
            return 0

        if args.command == "geocode":
            service = orchestrator.create_geocoding_service()
            geo_location = service.geocode_address(args.address)
            if geo_location is None:
                print(f"Could not locate address: {args.address}")
                return 1
            print(f"{geo_location.latitude},{geo_location.longitude}")
            return 0

        if args.command == "watch":
            asyncio.run(watch_members(orchestrator.create_member_sync(), args.duration))
            return 0

        return 1

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130  # SIGINT
    except Exception as e:
        logger.error(f"Application failed: {e}", exc_info=True)
        return 1


async def watch_members(member_sync: MemberSync, duration: Optional[float]) -> None:
    """メンバー一覧の同期を続け、変化のたびに件数を表示"""

    def on_change(sync: MemberSync) -> None:
        if sync.error:
            print(f"[{sync.state.value}] error: {sync.error}")
        else:
            print(f"[{sync.state.value}] {len(sync.members)} members")

    member_sync.add_listener(on_change)

    async with member_sync:
        if duration is None:
            await asyncio.Event().wait()
        else:
            await asyncio.sleep(duration)


if __name__ == "__main__":
    sys.exit(main())
