"""Tests for conflict resolution strategies."""

import pytest

from blueprint_sync.sync.models import ConflictContext, ConflictKind, Decision
from blueprint_sync.sync.resolver import (
    CallbackResolver,
    InteractiveResolver,
    OverwriteResolver,
    SkipResolver,
    create_resolver,
)


@pytest.fixture
def conflict():
    return ConflictContext(
        kind=ConflictKind.LOCAL_MODIFIED,
        local_path="AGENTS.md",
        blueprint_id="bp_1",
        diff="- old\n+ new",
    )


class TestResolvers:
    def test_skip(self, conflict):
        assert SkipResolver().resolve(conflict) is Decision.SKIP

    def test_overwrite(self, conflict):
        assert OverwriteResolver().resolve(conflict) is Decision.PROCEED

    def test_interactive_collects(self, conflict):
        resolver = InteractiveResolver()
        assert resolver.resolve(conflict) is Decision.SKIP
        assert resolver.pending_conflicts == [conflict]

    @pytest.mark.parametrize(
        "answer,expected",
        [
            (True, Decision.PROCEED),
            (False, Decision.SKIP),
            (Decision.PROCEED, Decision.PROCEED),
            (Decision.SKIP, Decision.SKIP),
        ],
    )
    def test_callback(self, conflict, answer, expected):
        seen = []

        def decide(ctx):
            seen.append(ctx)
            return answer

        assert CallbackResolver(decide).resolve(conflict) is expected
        assert seen == [conflict]


class TestCreateResolver:
    @pytest.mark.parametrize(
        "strategy,cls",
        [
            ("skip", SkipResolver),
            ("overwrite", OverwriteResolver),
            ("interactive", InteractiveResolver),
        ],
    )
    def test_known(self, strategy, cls):
        assert isinstance(create_resolver(strategy), cls)

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown conflict strategy"):
            create_resolver("merge")
