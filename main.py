import asyncio
import argparse
import logging
import sys
from pathlib import Path

from filebeam.config import load_config
from filebeam.errors import FileBeamError
from filebeam.client.sender import FileSender
from filebeam.server.receiver import FileReceiver
from filebeam.discovery import PeerDiscovery
from filebeam.history import TransferHistory
from filebeam.network.interfaces import local_ipv4_addresses
from filebeam.transfer.progress import TransferObserver

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout),
        logging.FileHandler('filebeam.log')
    ]
)
logger = logging.getLogger(__name__)


class ConsoleObserver(TransferObserver):
    """Prints progress changes; log messages already go through logging"""

    def __init__(self):
        self._last = None

    def on_progress(self, percent: int):
        if percent != self._last and percent > 0:
            print(f"  {percent:3d}%", flush=True)
        self._last = percent

    def on_transfer_complete(self, record):
        print(f"✓ {record}")


def build_config(args):
    """Load the config file and apply command line overrides"""
    config = load_config(args.config)
    return config.with_overrides(
        transfer_port=args.port,
        save_directory=getattr(args, 'save_dir', None),
        discovery_timeout=getattr(args, 'timeout', None)
    )


async def run_receive(args):
    """Run receiver mode"""
    config = build_config(args)
    observer = ConsoleObserver()
    history = TransferHistory(config.history_file)

    receiver = FileReceiver(config.save_directory, config, observer, history)
    discovery = PeerDiscovery(config, observer)

    await receiver.start(config.transfer_port, args.bind)
    try:
        if args.no_discovery:
            logger.info("Discovery disabled; senders need --host")
        elif not await discovery.start_responder(receiver.port, args.bind):
            logger.warning("Continuing without discovery; senders need --host")

        addresses = local_ipv4_addresses() or [config.default_ip]
        logger.info(f"Reachable at: {', '.join(f'{a}:{receiver.port}' for a in addresses)}")
        logger.info(f"Saving files to {receiver.save_directory}")

        await receiver.serve_forever()
    finally:
        await discovery.stop()
        await receiver.stop()


async def run_send(args):
    """Run sender mode"""
    config = build_config(args)
    host, port = args.host, config.transfer_port

    if args.discover or host is None:
        devices = await PeerDiscovery(config).search_devices()
        if not devices:
            logger.error("No receivers found; pass --host to send directly")
            return 1
        target = devices[0]
        logger.info(f"Using receiver {target}")
        host = target.ip_address
        port = args.port or target.port

    sender = FileSender(config, ConsoleObserver(), TransferHistory(config.history_file))
    await sender.send_file(Path(args.file), host, port)
    return 0


async def run_discover(args):
    """Run one discovery round"""
    config = build_config(args)
    devices = await PeerDiscovery(config).search_devices()

    for device in devices:
        print(f"{device.name}\t{device.ip_address}\t{device.port}")
    return 0


def run_history(args):
    """Show or clear transfer history"""
    config = build_config(args)
    history = TransferHistory(config.history_file)

    if args.clear:
        history.clear()
        logger.info("Transfer history cleared")
        return 0

    for record in history.records():
        print(record)
    return 0


def create_parser():
    """Create argument parser"""
    parser = argparse.ArgumentParser(
        description='FileBeam - LAN File Transfer',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Wait for files
  python main.py receive --port 5050 --save-dir ~/Downloads/FileBeam

  # Send to a known address
  python main.py send report.pdf --host 192.168.1.20 --port 5050

  # Send to the first receiver that answers discovery
  python main.py send report.pdf --discover

  # List receivers on the network
  python main.py discover
        """
    )

    # Common arguments
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        '--config',
        default=None,
        help='YAML configuration file'
    )
    common.add_argument(
        '--port',
        type=int,
        default=None,
        help='Transfer port (default: 5050)'
    )
    common.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )
    common.add_argument(
        '--quiet',
        action='store_true',
        help='Minimal output'
    )

    subparsers = parser.add_subparsers(dest='mode', required=True)

    receive = subparsers.add_parser('receive', parents=[common], help='Receive files')
    receive.add_argument(
        '--save-dir',
        default=None,
        help='Directory for received files (default: ~/Downloads/FileBeam)'
    )
    receive.add_argument(
        '--bind',
        default='0.0.0.0',
        help='Address to listen on (default: 0.0.0.0)'
    )
    receive.add_argument(
        '--no-discovery',
        action='store_true',
        help='Do not answer discovery broadcasts'
    )

    send = subparsers.add_parser('send', parents=[common], help='Send a file')
    send.add_argument('file', help='File to send')
    send.add_argument(
        '--host',
        default=None,
        help='Receiver address (omit to use discovery)'
    )
    send.add_argument(
        '--discover',
        action='store_true',
        help='Pick the first receiver found by discovery'
    )
    send.add_argument(
        '--timeout',
        type=float,
        default=None,
        help='Discovery timeout in seconds (default: 3)'
    )

    discover = subparsers.add_parser('discover', parents=[common], help='List receivers')
    discover.add_argument(
        '--timeout',
        type=float,
        default=None,
        help='Discovery timeout in seconds (default: 3)'
    )

    history = subparsers.add_parser('history', parents=[common], help='Show transfer history')
    history.add_argument(
        '--clear',
        action='store_true',
        help='Delete all history records'
    )

    return parser


async def main(argv=None):
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Adjust logging level
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)
    elif args.quiet:
        logging.getLogger().setLevel(logging.WARNING)

    # Route to appropriate mode
    try:
        if args.mode == 'receive':
            await run_receive(args)
            return 0
        elif args.mode == 'send':
            return await run_send(args)
        elif args.mode == 'discover':
            return await run_discover(args)
        elif args.mode == 'history':
            return run_history(args)
    except (FileBeamError, ValueError) as e:
        logger.error(f"{e}")
        return 1


def cli():
    """Console script entry point"""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user")


if __name__ == '__main__':
    cli()
