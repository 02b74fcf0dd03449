# map_extractor/cli.py
import argparse
import sys

from loguru import logger
from rich.console import Console
from rich.table import Table

from .config import DEFAULT_ZOOM, ExtractorConfig, MAX_GRID_WIDTH
from .errors import ConfigError, ExtractorError
from .extractor import MapExtractor
from .grid import clamp_width
from .providers import ProviderManager
from .tile_math import TileMath

console = Console()


def setup_logging(verbose: bool = False, log_file: str = None):
    """
    配置 loguru 输出：stderr 默认 INFO，--verbose 时 DEBUG，可选写入日志文件
    """
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")
    if log_file:
        logger.add(log_file, level="DEBUG", encoding="utf-8")


def parse_headers(values) -> dict:
    headers = {}
    for item in values or []:
        if "=" not in item:
            raise ConfigError(f"请求头格式应为 KEY=VALUE: {item!r}")
        key, value = item.split("=", 1)
        headers[key.strip()] = value.strip()
    return headers


def resolve_zoom(args, file_data: dict) -> int:
    """
    换算经纬度时使用的缩放级别：--zoom 优先，其次配置文件，最后默认值
    """
    if args.zoom is not None:
        return args.zoom
    zoom = file_data.get("zoom", DEFAULT_ZOOM)
    if isinstance(zoom, bool) or not isinstance(zoom, int):
        raise ConfigError(f"zoom 必须是整数: {zoom!r}")
    return zoom


def resolve_origin(args, zoom: int = DEFAULT_ZOOM):
    """
    确定起点瓦片：优先使用 --x/--y，否则由 --lat/--lon 在 zoom 级别换算
    """
    if args.x is not None and args.y is not None:
        return args.x, args.y
    if args.lat is not None and args.lon is not None:
        return TileMath.latlon_to_tile(args.lat, args.lon, zoom)
    if args.config:
        return None, None
    raise ConfigError("需要提供 --x/--y 或 --lat/--lon")


def build_config(args) -> ExtractorConfig:
    file_data = ExtractorConfig.read_file(args.config) if args.config else {}
    origin_x, origin_y = resolve_origin(args, resolve_zoom(args, file_data))
    overrides = {
        "origin_x": origin_x,
        "origin_y": origin_y,
        "zoom": args.zoom,
        "width": args.width,
        "provider": args.provider,
        "url_template": args.url_template,
        "headers": parse_headers(args.header) or None,
        "max_workers": args.threads,
        "retries": args.retries,
        "timeout": args.timeout,
        "report_interval": args.interval,
        "output_dir": args.output_dir,
        "output_name": args.output_name,
        "enable_performance_monitor": True if args.perf else None,
    }
    if args.config:
        logger.info(f"加载配置文件: {args.config}")
    return ExtractorConfig.from_dict(file_data, **overrides)


def cmd_list_providers():
    table = Table(title="可用瓦片源")
    table.add_column("name", style="cyan")
    table.add_column("type")
    table.add_column("zoom_range")
    table.add_column("url_template")
    for name in ProviderManager.list_providers():
        p = ProviderManager.get_provider(name)
        table.add_row(name, p.provider_type.value, f"{p.min_zoom}-{p.max_zoom}", p.url_template)
    console.print(table)


def cmd_bounds(args):
    width = clamp_width(args.width)
    west, south, east, north = TileMath.get_grid_bbox(args.x, args.y, width, args.zoom)
    table = Table(title=f"网格范围 z={args.zoom} width={width}")
    table.add_column("edge", style="cyan")
    table.add_column("degrees")
    for k, v in [("west", west), ("south", south), ("east", east), ("north", north)]:
        table.add_row(k, f"{v:.6f}")
    console.print(table)


def cmd_extract(args):
    config = build_config(args)
    console.print("[bold blue]提取地图瓦片网格[/bold blue]")
    extractor = MapExtractor(config)
    try:
        result = extractor.start(download_when_complete=not args.no_export)
    finally:
        extractor.close()
    print_stats(result.get_statistics())


def print_stats(stats: dict):
    table = Table(title="统计")
    for k in ["tiles", "size", "elapsed", "output", "state"]:
        table.add_row(k, str(stats.get(k, "")))
    console.print(table)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="地图瓦片网格提取与拼接工具")
    subparsers = parser.add_subparsers(dest="cmd")

    subparsers.add_parser("list", help="列出预置瓦片源")

    p_bounds = subparsers.add_parser("bounds", help="显示网格覆盖的经纬度范围")
    p_bounds.add_argument("--x", type=int, required=True)
    p_bounds.add_argument("--y", type=int, required=True)
    p_bounds.add_argument("--zoom", type=int, default=DEFAULT_ZOOM)
    p_bounds.add_argument("--width", type=int, default=8)

    p_extract = subparsers.add_parser("extract", help="下载瓦片网格并拼接为一张图片")
    p_extract.add_argument("--x", type=int, help="起点瓦片x坐标（左上角）")
    p_extract.add_argument("--y", type=int, help="起点瓦片y坐标（左上角）")
    p_extract.add_argument("--lat", type=float, help="起点纬度，与 --lon 一起使用")
    p_extract.add_argument("--lon", type=float, help="起点经度，与 --lat 一起使用")
    p_extract.add_argument("--zoom", type=int, default=None, help="缩放级别，默认 21")
    p_extract.add_argument("--width", type=int, default=None,
                           help=f"网格宽度 1-{MAX_GRID_WIDTH}，默认 8")
    p_extract.add_argument("--provider", default=None, help="瓦片源 (google / osm / bing)")
    p_extract.add_argument("--url-template", default=None, help="自定义URL模板，如 https://host/{z}/{x}/{y}.png")
    p_extract.add_argument("--header", action="append", help="附加请求头 KEY=VALUE，可重复")
    p_extract.add_argument("--threads", type=int, default=None, help="下载线程数，默认 4")
    p_extract.add_argument("--retries", type=int, default=None, help="单个瓦片的重试次数，默认 0")
    p_extract.add_argument("--timeout", type=float, default=None, help="请求超时（秒）")
    p_extract.add_argument("--interval", type=float, default=None, help="进度报告间隔（秒），默认 10")
    p_extract.add_argument("--output-dir", default=None)
    p_extract.add_argument("--output-name", default=None, help="输出文件名，默认 extracted_map.png")
    p_extract.add_argument("--config", default=None, help="JSON 配置文件")
    p_extract.add_argument("--no-export", action="store_true", help="只合成，不写出文件")
    p_extract.add_argument("--perf", action="store_true", help="启用性能监控")
    p_extract.add_argument("--verbose", action="store_true", help="输出调试日志")
    p_extract.add_argument("--log-file", default=None, help="日志文件路径")

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.cmd == "list":
            cmd_list_providers()
        elif args.cmd == "bounds":
            cmd_bounds(args)
        elif args.cmd == "extract":
            setup_logging(args.verbose, args.log_file)
            cmd_extract(args)
        else:
            parser.print_help()
    except ExtractorError as e:
        console.print(f"[bold red]错误:[/bold red] {e}")
        return 1
    except KeyboardInterrupt:
        console.print("[yellow]已中断[/yellow]")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
