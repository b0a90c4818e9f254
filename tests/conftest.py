import os

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import random

import pygame
import pytest

from orrery.core.scene import TextureHandle


class StubTextures:
    """Texture provider that never delivers an image."""

    def __init__(self) -> None:
        self.requested: list[str] = []

    def load_surface_texture(self, name: str) -> TextureHandle:
        self.requested.append(name)
        return TextureHandle(name=name)


@pytest.fixture
def textures() -> StubTextures:
    return StubTextures()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def pygame_ui():
    pygame.init()
    pygame.font.init()
    yield
    pygame.quit()


@pytest.fixture
def font(pygame_ui) -> pygame.font.Font:
    return pygame.font.Font(None, 16)
