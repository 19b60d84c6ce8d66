"""
avmeta CLI - 按番号或页面 URL 抓取影片元数据
"""
import argparse
import json
import sys

from avmeta.errors import FetchError, InvalidIdentifier, UnknownProvider, Unsupported
from avmeta.scraper.registry import ProviderRegistry, build_default_registry
from avmeta.utils.config import load_config, save_config
from avmeta.utils.logger import logger
from avmeta.utils.network import Fetcher
from avmeta.utils.translate import translate_record

EXIT_FETCH_ERROR = 1
EXIT_INVALID = 2
EXIT_UNSUPPORTED = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="avmeta",
        description="avmeta: movie metadata scraper",
    )
    parser.add_argument("--config", type=str, default=None, help="配置文件路径 (默认: AVMETA_CONFIG 或包内 config.json)")
    parser.add_argument("-v", "--verbose", action="store_true", help="显示详细日志")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("providers", help="列出已注册的 provider")

    info = sub.add_parser("info", help="按番号或页面 URL 获取元数据")
    info.add_argument("provider", help="provider 名称, 例如 HEYZO / AVE")
    info.add_argument("target", help="番号 或 影片页面 URL")
    info.add_argument("--translate", action="store_true", help="翻译标题和简介")

    search = sub.add_parser("search", help="关键词搜索")
    search.add_argument("provider", help="provider 名称")
    search.add_argument("keyword", help="搜索关键词")

    config = sub.add_parser("config", help="查看或修改配置")
    config.add_argument("pairs", nargs="*", metavar="KEY=VALUE", help="写入配置项, 例如 proxy_url=http://127.0.0.1:7890")

    return parser


def _print_json(data) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))


def _config(cfg, pairs, path) -> int:
    for pair in pairs:
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or key not in cfg.to_dict():
            logger.error(f"invalid config item: {pair!r}")
            return EXIT_INVALID
        setattr(cfg, key, value.strip())
    if pairs:
        cfg.__post_init__()
        save_config(cfg, path)

    data = cfg.to_dict()
    if data.get("translate_api_key"):
        data["translate_api_key"] = "***"
    _print_json(data)
    return 0


def main(argv=None, registry: ProviderRegistry | None = None, fetcher: Fetcher | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.verbose:
        logger.setLevel("DEBUG")

    cfg = load_config(args.config)
    registry = registry or build_default_registry()

    if args.command == "config":
        return _config(cfg, args.pairs, args.config)

    if args.command == "providers":
        _print_json([
            {
                "name": name,
                "priority": registry.factory(name).priority,
            }
            for name in registry.names()
        ])
        return 0

    try:
        provider = registry.create(args.provider, fetcher=fetcher or Fetcher.from_config(cfg))
        if args.command == "info":
            target = args.target.strip()
            if target.lower().startswith(("http://", "https://")):
                record = provider.get_by_url(target)
            else:
                record = provider.get_by_id(target)
            if args.translate:
                translate_record(record, cfg)
            _print_json(record.to_dict())
        else:
            _print_json([hit.to_dict() for hit in provider.search(args.keyword)])
    except (InvalidIdentifier, UnknownProvider) as e:
        logger.error(str(e))
        return EXIT_INVALID
    except Unsupported as e:
        logger.error(str(e))
        return EXIT_UNSUPPORTED
    except FetchError as e:
        logger.error(str(e))
        return EXIT_FETCH_ERROR
    return 0


if __name__ == "__main__":
    sys.exit(main())
