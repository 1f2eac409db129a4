from tests.fakes.fake_key_value_store import FakeKeyValueStore

__all__ = ["FakeKeyValueStore"]
