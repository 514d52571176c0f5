"""
Command Line Interface

Provides a rich CLI for the scan engine:
- Colorized output with rich
- Progress bar while hosts are pinged and ports probed
- Short diagnostics for malformed targets and port specifications
"""

import argparse
import asyncio
import logging
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.text import Text

from .discover import PING_METHODS
from .ports import describe_ports, parse_ports
from .scanner import PortScanner, ScanConfig, ScanReport, default_workers
from .targets import count_addresses

logger = logging.getLogger(__name__)

PRIMARY_STYLE = "rgb(22,121,226)"
ACCENT_STYLE = "rgb(233,134,29)"

BANNER = """
░▒▓███████▓▒░░▒▓████████▓▒░▒▓████████▓▒░▒▓███████▓▒░░▒▓██████▓▒░ ░▒▓██████▓▒░░▒▓███████▓▒░
░▒▓█▓▒░░▒▓█▓▒░▒▓█▓▒░         ░▒▓█▓▒░  ░▒▓█▓▒░      ░▒▓█▓▒░░▒▓█▓▒░▒▓█▓▒░░▒▓█▓▒░▒▓█▓▒░░▒▓█▓▒░
░▒▓█▓▒░░▒▓█▓▒░▒▓█▓▒░         ░▒▓█▓▒░  ░▒▓█▓▒░      ░▒▓█▓▒░      ░▒▓█▓▒░░▒▓█▓▒░▒▓█▓▒░░▒▓█▓▒░
░▒▓█▓▒░░▒▓█▓▒░▒▓██████▓▒░    ░▒▓█▓▒░   ░▒▓██████▓▒░░▒▓█▓▒░      ░▒▓████████▓▒░▒▓█▓▒░░▒▓█▓▒░
░▒▓█▓▒░░▒▓█▓▒░▒▓█▓▒░         ░▒▓█▓▒░         ░▒▓█▓▒░▒▓█▓▒░      ░▒▓█▓▒░░▒▓█▓▒░▒▓█▓▒░░▒▓█▓▒░
░▒▓█▓▒░░▒▓█▓▒░▒▓█▓▒░         ░▒▓█▓▒░         ░▒▓█▓▒░▒▓█▓▒░░▒▓█▓▒░▒▓█▓▒░░▒▓█▓▒░▒▓█▓▒░░▒▓█▓▒░
░▒▓█▓▒░░▒▓█▓▒░▒▓████████▓▒░  ░▒▓█▓▒░  ░▒▓███████▓▒░ ░▒▓██████▓▒░░▒▓█▓▒░░▒▓█▓▒░▒▓█▓▒░░▒▓█▓▒░
"""

EXIT_OK = 0
EXIT_INPUT_ERROR = 2
EXIT_INTERRUPTED = 130


class NetscanCLI:
    """Command line interface for the host and port scanner."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self.report: Optional[ScanReport] = None

    def run(self, args: Optional[List[str]] = None) -> int:
        """Run the CLI with given arguments and return the exit status."""
        parser = self._create_parser()
        args = parser.parse_args(args)

        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.WARNING,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        try:
            config = ScanConfig(
                connect_timeout=args.timeout,
                ping_timeout=args.ping_timeout,
                ping_retries=args.ping_retries,
                ping_method=args.ping_method,
                check_reachability=not args.no_ping,
                grab_banners=not args.no_banner,
                workers=args.workers
            )
            ports = parse_ports(args.ports, default_range=config.default_ports)
            host_count = count_addresses(args.address)
        except ValueError as e:
            # PortSpecError, CidrError or an out-of-range option
            self._print_error(str(e))
            return EXIT_INPUT_ERROR

        self._print_header(args.address, ports, host_count, config)

        try:
            self.report = asyncio.run(self._run_scan(args.address, ports, config))
        except KeyboardInterrupt:
            self.console.print("\nScan interrupted.", style="yellow")
            return EXIT_INTERRUPTED

        self._display_results(self.report)
        return EXIT_OK

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create argument parser."""
        parser = argparse.ArgumentParser(
            prog="netscan",
            description="Discover live hosts and their open TCP ports",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  %(prog)s --address 192.168.1.10
  %(prog)s --address 192.168.1.0/24 --ports 22,80,443
  %(prog)s --address 10.0.0.0/28 --ports 1-1024 --workers 64 --no-banner

Hosts that block ICMP echo are skipped unless --no-ping is given.
            """
        )
        parser.add_argument("--address", "-a", required=True,
                            help="Either a single IP address or CIDR address")
        parser.add_argument("--ports", "-p",
                            help="A single port, range of ports (ex: 21-711), or comma separated list of ports "
                                 "(default: 1-1024)")
        parser.add_argument("--timeout", "-t", default=3.0, type=float, help="TCP connect timeout in seconds")
        parser.add_argument("--ping-timeout", default=1.0, type=float, help="ICMP echo timeout in seconds")
        parser.add_argument("--ping-retries", default=2, type=int, help="Extra echo requests before giving up")
        parser.add_argument("--ping-method", choices=PING_METHODS, default="ping",
                            help="Use the system ping binary or raw ICMP packets (needs root)")
        parser.add_argument("--workers", "-w", default=default_workers(), type=int,
                            help="Number of concurrent probes")
        parser.add_argument("--no-ping", action="store_true", help="Scan every address without a reachability check")
        parser.add_argument("--no-banner", action="store_true", help="Do not grab service banners")
        parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
        return parser

    async def _run_scan(self, target: str, ports: List[int], config: ScanConfig) -> ScanReport:
        """Run the scan with a progress bar."""
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TimeElapsedColumn(),
            console=self.console,
            transient=True
        ) as progress:
            task = progress.add_task("Scanning...", total=None)

            async def update_progress(completed: int, total: int, message: str):
                progress.update(task, completed=completed, total=total, description=message)

            scanner = PortScanner(config, progress_callback=update_progress)
            return await scanner.scan(target, ports)

    def _print_header(self, target: str, ports: List[int], host_count: int, config: ScanConfig):
        self.console.print(Text(BANNER, style=PRIMARY_STYLE, no_wrap=True, overflow="crop"))
        header = Text()
        header.append("Target IP: ")
        header.append(target, style=PRIMARY_STYLE)
        header.append("\nPorts: ")
        header.append(describe_ports(ports), style=PRIMARY_STYLE)
        header.append(f"\nHosts: {host_count}  Workers: {config.workers}")
        if not config.check_reachability:
            header.append("  (reachability check disabled)", style="yellow")
        self.console.print(Panel.fit(header, title="netscan", style="bold"))

    def _display_results(self, report: ScanReport):
        """Display scan results."""
        if not report.hosts:
            self.console.print("\nNo hosts found.")
            return

        self.console.print("\nIP                 Open Ports", style=PRIMARY_STYLE)
        self.console.print("-----------------------------", style=PRIMARY_STYLE)
        for host in report:
            self.console.print(host.address, style=PRIMARY_STYLE)
            for port, banner in host.open_ports.items():
                line = Text("\t\t")
                line.append(f"{port} -> {banner}", style=ACCENT_STYLE)
                self.console.print(line)

        self.console.print(
            f"\n{len(report.hosts)} host(s) with {report.open_port_count} open port(s) "
            f"in {report.duration:.2f}s",
            style="dim"
        )

    def _print_error(self, message: str):
        if not message.startswith("ERROR"):
            message = f"ERROR: {message}"
        self.console.print(message, style="red", markup=False, highlight=False)


def main():
    """Main entry point for CLI."""
    raise SystemExit(NetscanCLI().run())


if __name__ == "__main__":
    main()
