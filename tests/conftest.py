# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

from __future__ import annotations

from pathlib import Path

import pytest


FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES


@pytest.fixture
def calculator_path() -> Path:
    return FIXTURES / "calculator.py"


@pytest.fixture
def calculator_server(calculator_path: Path):
    from docmcp.compiler import compile_server
    from docmcp.parser import load_module, parse_module

    module = load_module(calculator_path)
    ir = parse_module(module, source_path=calculator_path)
    return compile_server(ir, module, name="calculator")
