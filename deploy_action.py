"""Register the offboarding custom action with the host platform."""
import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from deployment.descriptor import (
    DescriptorError,
    build_registration_payload,
    collect_modules,
    load_descriptor,
    validate_descriptor,
)
from deployment.registration import HostPlatformClient, RegistrationError
from offboard_function import setup_logging

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTOR = Path(__file__).parent / 'action_descriptor.json'


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Register the custom action with the host platform.")
    parser.add_argument('--descriptor', type=Path, default=DEFAULT_DESCRIPTOR,
                        help="Path to the action descriptor JSON")
    parser.add_argument('--api-url', default=os.environ.get('HOST_API_URL'),
                        help="Host platform API root (env: HOST_API_URL)")
    parser.add_argument('--api-key', default=os.environ.get('HOST_API_KEY'),
                        help="Host platform API key (env: HOST_API_KEY)")
    parser.add_argument('--dry-run', action='store_true',
                        help="Print the registration payload instead of sending it")
    parser.add_argument('--log-level', default=os.environ.get('LOG_LEVEL', 'INFO'))
    return parser


def deploy(descriptor_path: Path, client: Optional[HostPlatformClient], dry_run: bool = False) -> int:
    """
    Validate the descriptor and register it.

    Args:
        descriptor_path: Path to the action descriptor
        client: Registration client (unused on dry runs)
        dry_run: Print the payload instead of sending it

    Returns:
        Process exit code
    """
    try:
        descriptor = load_descriptor(descriptor_path)
    except DescriptorError as e:
        logger.error(str(e))
        return 1

    base_dir = Path(descriptor_path).parent
    problems = validate_descriptor(descriptor, base_dir=base_dir)
    if problems:
        for problem in problems:
            logger.error(f"Descriptor problem: {problem}")
        return 1

    script_body = (base_dir / descriptor['scriptFile']).read_text(encoding='utf-8')
    modules = collect_modules(base_dir, descriptor['scriptFile'])
    logger.info(f"Bundling {len(modules)} supporting modules", extra={'modules': sorted(modules)})
    payload = build_registration_payload(descriptor, script_body, modules)

    if dry_run:
        print(json.dumps(payload, indent=2))
        return 0

    try:
        record = client.register_action(payload)
    except RegistrationError as e:
        logger.error(f"Registration failed: {e}", extra={'status_code': e.status_code})
        return 1

    logger.info(f"Registered custom action '{descriptor['name']}'", extra={'record': record})
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    client = None
    if not args.dry_run:
        if not args.api_url or not args.api_key:
            parser.error("--api-url and --api-key are required unless --dry-run is given")
        client = HostPlatformClient(args.api_url, args.api_key)

    return deploy(args.descriptor, client, dry_run=args.dry_run)


if __name__ == '__main__':
    sys.exit(main())
