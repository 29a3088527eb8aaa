"""Fixtures and configuration for pytest."""

import pytest

from script2rs.transpiler import default_environment

PUP_PLAYER = """\
extends Node2D

@expose
var health: int = 100
var speed: float = 2.5

fn init() {
    Console.print("hi")
}

fn take_damage(amount: int) {
    health -= amount
}
"""

TS_PLAYER = """\
export class Player extends Node2D {
    @expose
    health: int = 100;
    speed: float = 2.5;

    init(): void {
        console.log("hi");
    }

    takeDamage(amount: int): void {
        this.health -= amount;
    }
}
"""

CS_PLAYER = """\
using Engine;

public class Player : Node2D {
    [Expose]
    public int health = 100;
    public float speed = 2.5f;

    public void Init() {
        Console.WriteLine("hi");
    }

    public void TakeDamage(int amount) {
        health -= amount;
    }
}
"""


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "cli: mark test as exercising the command line")


@pytest.fixture(scope="session")
def environment():
    """Frozen registries and binding table of the built-in frontends."""
    return default_environment()


@pytest.fixture
def registries(environment):
    return environment[0]


@pytest.fixture
def bindings(environment):
    return environment[1]


@pytest.fixture
def pup_player() -> str:
    return PUP_PLAYER


@pytest.fixture
def ts_player() -> str:
    return TS_PLAYER


@pytest.fixture
def cs_player() -> str:
    return CS_PLAYER
