"""Tests for the python -m pactcore command line."""

import json

import pytest

import pactcore.__main__ as cli


@pytest.fixture
def use_test_engine(monkeypatch, engine):
    monkeypatch.setattr(cli, "engine", engine)


async def run(*argv) -> int:
    return await cli.run(cli.build_parser().parse_args(list(argv)))


class TestCli:
    def test_parser_requires_command(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])

    @pytest.mark.asyncio
    async def test_can_i_deploy_exit_codes(self, broker, make_pact, use_test_engine, capsys):
        published = await broker.publish_pact("web", "1.0.0", "api", make_pact())

        assert await run("can-i-deploy", "--pacticipant", "web", "--version", "1.0.0") == 1
        blocked = json.loads(capsys.readouterr().out)
        assert blocked["summary"]["reason"] == "1 pact(s) have not been verified"

        await broker.record_verification("api", published.pact.content_sha, "2.0.0", True)
        assert await run("can-i-deploy", "--pacticipant", "web", "--version", "1.0.0") == 0
        assert json.loads(capsys.readouterr().out)["summary"]["deployable"] is True

    @pytest.mark.asyncio
    async def test_matrix(self, broker, make_pact, use_test_engine, capsys):
        await broker.publish_pact("web", "1.0.0", "api", make_pact())
        await broker.publish_pact("web", "1.1.0", "api", make_pact(metadata={"v": 2}))

        assert await run("matrix", "--pacticipant", "web") == 0
        assert len(json.loads(capsys.readouterr().out)["matrix"]) == 2

    @pytest.mark.asyncio
    async def test_for_verification_selectors(self, broker, make_pact, use_test_engine, capsys):
        await broker.publish_pact("web", "1.0.0", "api", make_pact())
        await broker.publish_pact("mobile", "7", "api", make_pact(consumer="mobile"))
        await broker.tag_version("web", "1.0.0", "main")

        assert await run("for-verification", "--provider", "api", "--selector", '{"tag": "main"}') == 0
        [item] = json.loads(capsys.readouterr().out)
        assert item["consumer"] == "web"
        assert item["notices"] == ["This pact is being verified because the consumer version is tagged 'main'."]
