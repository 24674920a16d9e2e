import logging
import unittest
from dataclasses import dataclass

import pytest

from typewire import Container


@dataclass
class Settings:
    key: str


@dataclass
class Repo:
    settings: Settings


@dataclass
class Service:
    repo: Repo


class TestCreatorFailure(unittest.TestCase):
    cont: Container

    def setUp(self):
        self.cont = Container()
        self.calls: list[str] = []

    def test_reported_failure_is_raised_as_is(self):
        err = ValueError("some error")

        def make_settings() -> tuple[Settings, Exception | None]:
            return Settings("some-key"), err

        with pytest.raises(ValueError) as ctx:
            self.cont.set(make_settings)

        assert ctx.value is err
        assert self.cont.get("Settings") is None

    def test_failure_of_creator_with_arguments_is_raised(self):
        def make_settings() -> Settings:
            return Settings("some-key")

        def make_repo(settings: Settings) -> tuple[Repo, Exception]:
            return Repo(settings), RuntimeError("some error")

        with pytest.raises(RuntimeError, match="some error"):
            self.cont.set(make_repo, make_settings)

        assert self.cont.get("Repo") is None

    def test_no_error_stores_first_value(self):
        def make_settings() -> tuple[Settings, Exception | None]:
            return Settings("some-key"), None

        self.cont.set(make_settings)

        assert self.cont.get("Settings") == Settings("some-key")

    def test_optional_union_error_annotation_is_accepted(self):
        from typing import Optional, Union

        def make_settings() -> tuple[Settings, Optional[Union[KeyError, ValueError]]]:
            return Settings("some-key"), None

        self.cont.set(make_settings)

        assert self.cont.get("Settings") == Settings("some-key")

    def test_failure_stops_remaining_creators(self):
        def make_settings() -> Settings:
            self.calls.append("settings")
            return Settings("some-key")

        def make_repo(settings: Settings) -> tuple[Repo, Exception | None]:
            self.calls.append("repo")
            return Repo(settings), LookupError("no repo")

        def make_service(repo: Repo) -> Service:
            self.calls.append("service")
            return Service(repo)

        with pytest.raises(LookupError):
            self.cont.set(make_settings, make_repo, make_service)

        assert self.calls == ["settings", "repo"]
        assert self.cont.get("Service") is None

    def test_values_stored_before_failure_are_kept(self):
        def make_settings() -> Settings:
            return Settings("some-key")

        def make_repo(settings: Settings) -> tuple[Repo, Exception | None]:
            return Repo(settings), LookupError("no repo")

        with pytest.raises(LookupError):
            self.cont.set(make_settings, make_repo)

        assert self.cont.get("Settings") == Settings("some-key")

    def test_failure_does_not_overwrite_existing_value(self):
        def make_settings() -> Settings:
            return Settings("old")

        def make_broken_settings() -> tuple[Settings, Exception | None]:
            return Settings("new"), ValueError("broken")

        self.cont.set(make_settings)
        with pytest.raises(ValueError):
            self.cont.set(make_broken_settings)

        assert self.cont.get("Settings") == Settings("old")

    def test_exception_raised_by_creator_propagates(self):
        def make_settings() -> Settings:
            msg = "boom"
            raise OSError(msg)

        def make_repo(settings: Settings) -> Repo:
            self.calls.append("repo")
            return Repo(settings)

        with pytest.raises(OSError, match="boom"):
            self.cont.set(make_repo, make_settings)

        assert self.calls == []


def test_reported_failure_is_logged_as_warning(caplog):
    c = Container()

    def make_settings() -> tuple[Settings, Exception | None]:
        return Settings("some-key"), ValueError("some error")

    with caplog.at_level(logging.WARNING, logger="typewire"), pytest.raises(ValueError):
        c.set(make_settings)

    assert any("reported a failure" in r.getMessage() for r in caplog.records)


def test_stored_and_replaced_keys_are_logged_at_debug(caplog):
    c = Container()

    def make_settings() -> Settings:
        return Settings("some-key")

    with caplog.at_level(logging.DEBUG, logger="typewire"):
        c.set(make_settings)
        c.set(make_settings)

    messages = [r.getMessage() for r in caplog.records]
    assert any("Stored 'Settings'" in m for m in messages)
    assert any("Replacing 'Settings'" in m for m in messages)
