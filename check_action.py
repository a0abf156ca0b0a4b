"""Check host platform connectivity, descriptor configuration and registration."""
import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from dotenv import load_dotenv

from deployment.descriptor import DescriptorError, load_descriptor, validate_descriptor
from deployment.registration import HostPlatformClient, RegistrationError
from offboard_function import setup_logging

DEFAULT_DESCRIPTOR = Path(__file__).parent / 'action_descriptor.json'

CheckResult = Tuple[str, bool, str]


def check_connectivity(client: HostPlatformClient) -> CheckResult:
    if client.ping():
        return 'connectivity', True, f"{client.base_url} is reachable"
    return 'connectivity', False, f"{client.base_url} did not answer the health check"


def check_configuration(descriptor_path: Path) -> CheckResult:
    try:
        descriptor = load_descriptor(descriptor_path)
    except DescriptorError as e:
        return 'configuration', False, str(e)

    problems = validate_descriptor(descriptor, base_dir=Path(descriptor_path).parent)
    if problems:
        return 'configuration', False, '; '.join(problems)
    return 'configuration', True, f"descriptor '{descriptor['name']}' is valid"


def check_registration(client: HostPlatformClient, action_name: str) -> CheckResult:
    try:
        record = client.get_action(action_name)
    except RegistrationError as e:
        return 'registration', False, str(e)

    if record is None:
        return 'registration', False, f"'{action_name}' is not registered"
    return 'registration', True, f"'{action_name}' is registered"


def run_checks(client: HostPlatformClient, descriptor_path: Path) -> List[CheckResult]:
    """Run every check; registration is looked up under the descriptor's name."""
    results = [check_connectivity(client), check_configuration(descriptor_path)]

    try:
        action_name = load_descriptor(descriptor_path).get('name')
    except DescriptorError:
        action_name = None

    if action_name:
        results.append(check_registration(client, action_name))
    else:
        results.append(('registration', False, 'no action name available from descriptor'))
    return results


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Check the custom action setup.")
    parser.add_argument('--descriptor', type=Path, default=DEFAULT_DESCRIPTOR)
    parser.add_argument('--api-url', default=os.environ.get('HOST_API_URL'))
    parser.add_argument('--api-key', default=os.environ.get('HOST_API_KEY'))
    parser.add_argument('--log-level', default=os.environ.get('LOG_LEVEL', 'WARNING'))
    args = parser.parse_args(argv)

    if not args.api_url or not args.api_key:
        parser.error("--api-url and --api-key are required")
    setup_logging(args.log_level)

    results = run_checks(HostPlatformClient(args.api_url, args.api_key), args.descriptor)
    for name, passed, detail in results:
        print(f"{'PASS' if passed else 'FAIL'}  {name}: {detail}")

    return 0 if all(passed for _, passed, _ in results) else 1


if __name__ == '__main__':
    sys.exit(main())
