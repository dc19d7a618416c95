"""Shared fixtures: a throwaway RSA key pair and a small host."""
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from usagestats.host import Computer, Item, ItemDescriptor, Plugin, StaticHost


@pytest.fixture(scope="session")
def private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=1024)


@pytest.fixture(scope="session")
def key_image(private_key):
    der = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return der.hex()


@pytest.fixture
def host():
    free_style = ItemDescriptor("freeStyleProject")
    matrix = ItemDescriptor("matrixProject")
    return StaticHost(
        secret_key=b"installation-secret",
        version="1.2.3",
        computer_list=[
            Computer("master", num_executors=2, architecture="linux", is_master=True),
            Computer("agent-1", num_executors=4, architecture="windows"),
        ],
        plugin_list=[
            Plugin("git", "4.1"),
            Plugin("ldap", "1.0", active=False),
        ],
        descriptor_list=[free_style, matrix],
        item_list=[
            Item("a", free_style),
            Item("b", free_style),
            Item("c", free_style),
        ],
    )
