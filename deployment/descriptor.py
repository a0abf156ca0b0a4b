"""Custom-action descriptor loading and validation."""
import ast
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


REQUIRED_KEYS = ('name', 'description', 'parameters', 'permissions', 'timeout', 'outputSchema', 'scriptFile')
REQUIRED_PARAMETER = 'UserEmail'


class DescriptorError(Exception):
    """Descriptor file is missing or not valid JSON."""


def load_descriptor(path: Path) -> Dict[str, Any]:
    """
    Read a descriptor file.

    Args:
        path: Path to the JSON descriptor

    Returns:
        Parsed descriptor

    Raises:
        DescriptorError: If the file cannot be read or parsed
    """
    path = Path(path)
    try:
        with path.open(encoding='utf-8') as f:
            data = json.load(f)
    except OSError as e:
        raise DescriptorError(f"Cannot read descriptor {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise DescriptorError(f"Descriptor {path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise DescriptorError(f"Descriptor {path} must contain a JSON object")

    logger.info(f"Loaded descriptor '{data.get('name')}' from {path}")
    return data


def validate_descriptor(data: Dict[str, Any], base_dir: Optional[Path] = None) -> List[str]:
    """
    Check a descriptor for problems that would break registration.

    Args:
        data: Parsed descriptor
        base_dir: Directory scriptFile is resolved against (skip file check if None)

    Returns:
        List of human-readable problems; empty when the descriptor is usable
    """
    problems = [f"Missing required key: {key}" for key in REQUIRED_KEYS if key not in data]

    parameters = data.get('parameters', [])
    if not isinstance(parameters, list):
        problems.append("parameters must be a list")
        parameters = []

    dict_params = [p for p in parameters if isinstance(p, dict)]
    names = [p.get('name') for p in dict_params]
    if len(dict_params) != len(parameters):
        problems.append("Every parameter must be an object")
    if REQUIRED_PARAMETER not in names:
        problems.append(f"Parameter {REQUIRED_PARAMETER} is not declared")
    else:
        user_email = dict_params[names.index(REQUIRED_PARAMETER)]
        if not user_email.get('required'):
            problems.append(f"Parameter {REQUIRED_PARAMETER} must be required")
    if len(set(names)) != len(names):
        problems.append("Parameter names must be unique")

    timeout = data.get('timeout')
    if 'timeout' in data and (not isinstance(timeout, int) or isinstance(timeout, bool) or timeout <= 0):
        problems.append("timeout must be a positive integer")

    if 'permissions' in data and not data.get('permissions'):
        problems.append("permissions must list at least one Graph permission")

    script_file = data.get('scriptFile')
    if base_dir is not None and script_file and not (Path(base_dir) / script_file).is_file():
        problems.append(f"Script file not found: {script_file}")

    return problems


def collect_modules(base_dir: Path, script_file: str) -> Dict[str, str]:
    """
    Gather the source of every project module the script imports.

    Imports are followed transitively. Only modules that resolve to a
    file under base_dir are collected; stdlib and third-party imports
    are left to the host runtime.

    Args:
        base_dir: Project root the imports are resolved against
        script_file: Entry script, relative to base_dir

    Returns:
        Mapping of relative module path (e.g. 'graph/graph_client.py') to source
    """
    base_dir = Path(base_dir)
    modules: Dict[str, str] = {}
    pending = [base_dir / script_file]
    seen = set()

    while pending:
        path = pending.pop()
        if path in seen:
            continue
        seen.add(path)

        source = path.read_text(encoding='utf-8')
        if path != base_dir / script_file:
            modules[path.relative_to(base_dir).as_posix()] = source

        for dotted in _imported_names(ast.parse(source, filename=str(path))):
            module_path = _resolve_module(base_dir, dotted)
            if module_path is not None and module_path not in seen:
                pending.append(module_path)

    return dict(sorted(modules.items()))


def _imported_names(tree: ast.AST) -> List[str]:
    names = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            names.extend(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module and node.level == 0:
            names.append(node.module)
            # from package import module
            names.extend(f"{node.module}.{alias.name}" for alias in node.names)
    return names


def _resolve_module(base_dir: Path, dotted: str) -> Optional[Path]:
    candidate = base_dir.joinpath(*dotted.split('.'))
    for path in (candidate.with_suffix('.py'), candidate / '__init__.py'):
        if path.is_file():
            return path
    return None


def build_registration_payload(
    descriptor: Dict[str, Any],
    script_body: str,
    modules: Optional[Dict[str, str]] = None
) -> Dict[str, Any]:
    """
    Descriptor plus script body, as POSTed to the registration endpoint.

    Args:
        descriptor: Parsed descriptor
        script_body: Source of the entry script
        modules: Supporting project modules, path to source

    Returns:
        Registration payload; 'modules' is always present
    """
    payload = {key: value for key, value in descriptor.items() if key != 'scriptFile'}
    payload['script'] = script_body
    payload['modules'] = dict(modules or {})
    return payload
