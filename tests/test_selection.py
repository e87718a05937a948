"""Tests for consumer version selector resolution."""

from datetime import datetime, timezone

import pytest

from pactcore.records import PactRecord
from pactcore.selection import (
    GENERIC_REASON,
    LATEST_REASON,
    Candidate,
    ConsumerVersionSelector,
    apply_selector,
    merge_matches,
    notice_text,
    resolve,
)

TAG_NOTICE = notice_text("the consumer version is tagged 'main'")
PROD_NOTICE = notice_text("the consumer version is currently deployed to 'prod'")


def _pact(pact_id: int, consumer: str, branch: str | None = "main", main_branch: str = "main") -> PactRecord:
    return PactRecord(
        id=pact_id,
        consumer_id=pact_id,
        consumer_name=consumer,
        consumer_main_branch=main_branch,
        consumer_version_id=pact_id * 10,
        consumer_version_number=f"{pact_id}.0.0",
        consumer_version_branch=branch,
        provider_id=99,
        provider_name="api",
        content="{}",
        content_sha=f"{pact_id:064x}",
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def candidates():
    return [
        Candidate(_pact(1, "web"), tags=frozenset({"main"})),
        Candidate(_pact(2, "mobile", branch="feat/login"), tags=frozenset({"main"}), environments=frozenset({"prod"})),
        Candidate(_pact(3, "admin", branch="trunk", main_branch="trunk"), environments=frozenset({"staging"})),
    ]


class TestSelectorModel:
    def test_aliases_and_unknown_keys(self):
        selector = ConsumerVersionSelector.model_validate({"mainBranch": True, "fallbackTag": "x"})
        assert selector.main_branch is True
        assert selector.has_criteria()

    def test_environment_alone_implies_deployed(self):
        assert ConsumerVersionSelector(environment="prod").wants_deployed
        assert not ConsumerVersionSelector(deployed=False).wants_deployed

    def test_false_flags_are_not_criteria(self):
        assert not ConsumerVersionSelector(latest=False, mainBranch=False).has_criteria()


class TestApplySelector:
    def test_notice_is_a_sentence(self):
        assert notice_text(LATEST_REASON) == "This pact is being verified because it is the latest pact."

    def test_consumer(self, candidates):
        match = apply_selector(candidates, ConsumerVersionSelector(consumer="mobile"))
        assert match.pact_ids == [2]
        assert match.notices == [notice_text("it is the latest pact from the consumer 'mobile'")]

    def test_tag(self, candidates):
        match = apply_selector(candidates, ConsumerVersionSelector(tag="main"))
        assert match.pact_ids == [1, 2]
        assert match.notices == [TAG_NOTICE]

    def test_branch(self, candidates):
        match = apply_selector(candidates, ConsumerVersionSelector(branch="feat/login"))
        assert match.pact_ids == [2]

    def test_main_branch_uses_each_consumers_setting(self, candidates):
        match = apply_selector(candidates, ConsumerVersionSelector(main_branch=True))
        assert match.pact_ids == [1, 3]
        assert match.notices == [notice_text("the consumer version is from the consumer's main branch")]

    def test_deployed_anywhere(self, candidates):
        match = apply_selector(candidates, ConsumerVersionSelector(deployed=True))
        assert match.pact_ids == [2, 3]
        assert match.notices == [notice_text("the consumer version is currently deployed")]

    def test_deployed_to_environment(self, candidates):
        match = apply_selector(candidates, ConsumerVersionSelector(deployed=True, environment="prod"))
        assert match.pact_ids == [2]
        assert match.notices == [PROD_NOTICE]

    def test_latest_only_adds_a_notice(self, candidates):
        match = apply_selector(candidates, ConsumerVersionSelector(latest=True))
        assert match.pact_ids == [1, 2, 3]
        assert match.notices == [notice_text(LATEST_REASON)]

    def test_predicates_are_conjunctive(self, candidates):
        match = apply_selector(candidates, ConsumerVersionSelector(tag="main", deployed=True))
        assert match.pact_ids == [2]
        assert match.notices == [TAG_NOTICE, notice_text("the consumer version is currently deployed")]

    def test_no_recognized_keys_falls_back(self, candidates):
        selector = ConsumerVersionSelector.model_validate({"fallbackTag": "x"})
        match = apply_selector(candidates, selector)
        assert match.pact_ids == [1, 2, 3]
        assert match.notices == [notice_text(GENERIC_REASON)]

    def test_empty_candidate_set(self):
        assert apply_selector([], ConsumerVersionSelector(tag="main")).pact_ids == []


class TestResolve:
    def test_no_selectors_returns_every_candidate(self, candidates):
        result = resolve(candidates, [])
        assert [item.pact.id for item in result] == [1, 2, 3]
        assert all(item.notices == [notice_text(LATEST_REASON)] for item in result)

    def test_selectors_are_alternatives_and_notices_accumulate(self, candidates):
        selectors = [
            ConsumerVersionSelector(tag="main"),
            ConsumerVersionSelector(deployed=True, environment="prod"),
        ]
        result = {item.pact.id: item.notices for item in resolve(candidates, selectors)}

        assert set(result) == {1, 2}
        assert result[1] == [TAG_NOTICE]
        assert PROD_NOTICE not in result[1]
        assert result[2] == [TAG_NOTICE, PROD_NOTICE]

    def test_merge_keeps_candidate_order(self, candidates):
        matches = [
            apply_selector(candidates, ConsumerVersionSelector(consumer="admin")),
            apply_selector(candidates, ConsumerVersionSelector(consumer="web")),
        ]
        assert [item.pact.id for item in merge_matches(candidates, matches)] == [1, 3]


class TestPactsForVerification:
    @pytest.mark.asyncio
    async def test_without_selectors(self, broker, make_pact):
        await broker.publish_pact("web", "1.0.0", "api", make_pact())
        await broker.publish_pact("web", "1.1.0", "api", make_pact(metadata={"v": 2}))
        await broker.publish_pact("mobile", "7", "api", make_pact(consumer="mobile"))

        result = await broker.pacts_for_verification("api")
        assert {(i.pact.consumer_name, i.pact.consumer_version_number) for i in result} == {
            ("web", "1.1.0"),
            ("mobile", "7"),
        }
        assert all(i.notices == [notice_text(LATEST_REASON)] for i in result)

    @pytest.mark.asyncio
    async def test_tag_and_deployment_selectors(self, broker, make_pact):
        await broker.publish_pact("web", "1.0.0", "api", make_pact())
        await broker.publish_pact("mobile", "7", "api", make_pact(consumer="mobile"))
        await broker.tag_version("web", "1.0.0", "main")
        await broker.tag_version("mobile", "7", "main")
        await broker.record_deployment("mobile", "7", "prod")

        result = await broker.pacts_for_verification("api", [
            ConsumerVersionSelector(tag="main"),
            ConsumerVersionSelector(deployed=True, environment="prod"),
        ])
        notices = {i.pact.consumer_name: i.notices for i in result}
        assert notices["web"] == [TAG_NOTICE]
        assert notices["mobile"] == [TAG_NOTICE, PROD_NOTICE]

    @pytest.mark.asyncio
    async def test_undeployed_versions_do_not_match(self, broker, make_pact):
        await broker.publish_pact("web", "1.0.0", "api", make_pact())
        await broker.record_deployment("web", "1.0.0", "prod")
        await broker.record_undeployment("web", "1.0.0", "prod")

        result = await broker.pacts_for_verification("api", [ConsumerVersionSelector(deployed=True)])
        assert result == []

    @pytest.mark.asyncio
    async def test_main_branch_follows_participant_setting(self, broker, make_pact):
        await broker.publish_pact("web", "1.0.0", "api", make_pact(), branch="trunk")
        selector = ConsumerVersionSelector(main_branch=True)

        assert await broker.pacts_for_verification("api", [selector]) == []
        await broker.set_main_branch("web", "trunk")
        [item] = await broker.pacts_for_verification("api", [selector])
        assert item.pact.consumer_version_branch == "trunk"

    @pytest.mark.asyncio
    async def test_only_latest_version_is_a_candidate(self, broker, make_pact):
        await broker.publish_pact("web", "1.0.0", "api", make_pact())
        await broker.tag_version("web", "1.0.0", "prod")
        await broker.publish_pact("web", "1.1.0", "api", make_pact(metadata={"v": 2}))

        result = await broker.pacts_for_verification("api", [ConsumerVersionSelector(tag="prod")])
        assert result == []
