"""
Tests for the command-line interface.

Commands run end-to-end against an httpx.MockTransport that serves scripted
status payloads, with a FakeClock in place of real sleeping.
"""

import json
from pathlib import Path

import httpx
import pytest

from acme_ownership import cli
from acme_ownership.cli import EXIT_CANCELLED, main, render_failure_report
from acme_ownership.enums import ChallengeType, VerificationState
from acme_ownership.models import ChallengeChange, DnsTxtRecord, FailureReport, ProblemDetail

from fakes import FakeClock, status_payload


class ScriptedApi:
    """MockTransport handler replaying GET payloads in order."""

    def __init__(self, payloads, trigger_status: int = 200) -> None:
        self.payloads = list(payloads)
        self.trigger_status = trigger_status
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "POST":
            return httpx.Response(self.trigger_status, json={})
        payload = self.payloads.pop(0) if len(self.payloads) > 1 else self.payloads[0]
        if isinstance(payload, int):
            return httpx.Response(payload, json={})
        return httpx.Response(200, json={"data": payload})

    @property
    def posts(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "POST"]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    for name in (cli.ENV_BASE_URL, cli.ENV_TOKEN, cli.ENV_CLIENT_ID, cli.ENV_LANGUAGE):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(cli, "DEFAULT_CONFIG_PATH", tmp_path / "missing" / "config.json")
    monkeypatch.setattr(cli, "load_dotenv", lambda: False)
    monkeypatch.chdir(tmp_path)


def run(argv, api: ScriptedApi, clock=None) -> int:
    return main(argv, transport=api.transport(), clock=clock or FakeClock())


class TestChallengeCommands:
    """challenge-file and challenge-dns-txt render the required artifact."""

    def test_challenge_file_writes_token_file(self, tmp_path, capsys) -> None:
        api = ScriptedApi([status_payload(http_value="val1")])

        code = run(["challenge-file", "site.live", "Example.com", "-o", str(tmp_path)], api)

        out = capsys.readouterr().out
        assert code == 0
        assert (tmp_path / "tok1").read_text(encoding="utf-8") == "val1"
        assert "http://example.com/.well-known/acme-challenge/tok1" in out
        assert "acme-ownership verify-file site.live example.com" in out
        assert api.requests[0].url.params["acme_version"] == "2"

    def test_challenge_file_refuses_path_tokens(self, tmp_path, capsys) -> None:
        payload = status_payload()
        payload["acme_preauthorization_challenges"]["http-01"]["token"] = "../evil"
        api = ScriptedApi([payload])

        code = run(["challenge-file", "site.live", "example.com", "-o", str(tmp_path)], api)

        assert code == 1
        assert not (tmp_path.parent / "evil").exists()

    def test_challenge_dns_txt_list(self, capsys) -> None:
        api = ScriptedApi([status_payload(dns_value="abc123")])

        code = run(["challenge-dns-txt", "site.live", "example.com"], api)

        out = capsys.readouterr().out
        assert code == 0
        assert '_acme-challenge.example.com 300 IN TXT "abc123"' in out
        assert "acme-ownership verify-dns-txt site.live example.com" in out

    def test_challenge_dns_txt_json(self, capsys) -> None:
        api = ScriptedApi([status_payload(dns_value="abc123")])

        code = run(["challenge-dns-txt", "site.live", "example.com", "--format", "json"], api)

        data = json.loads(capsys.readouterr().out)
        assert code == 0
        assert data['_acme-challenge.example.com 300 IN TXT "abc123"']["text-data"] == "abc123"

    @pytest.mark.parametrize("ownership,expected", [
        ("completed", "has been completed"),
        ("not_required", "is not necessary"),
    ])
    def test_nothing_to_do(self, ownership, expected, capsys) -> None:
        api = ScriptedApi([status_payload(ownership_status=ownership)])

        code = run(["challenge-dns-txt", "site.live", "example.com"], api)

        assert code == 0
        assert expected in capsys.readouterr().out

    def test_missing_dns_challenge_is_an_error(self, capsys) -> None:
        api = ScriptedApi([status_payload(http_value="val1")])

        code = run(["challenge-dns-txt", "site.live", "example.com"], api)

        assert code == 1
        assert "No dns-01 challenge information" in capsys.readouterr().err

    def test_domain_not_on_environment(self, capsys) -> None:
        api = ScriptedApi([404])

        code = run(["challenge-file", "site.live", "example.com"], api)

        err = capsys.readouterr().err
        assert code == 1
        assert "has not been added to the site.live environment" in err

    def test_invalid_site_env(self, capsys) -> None:
        api = ScriptedApi([status_payload()])

        code = run(["challenge-file", "sitelive", "example.com"], api)

        assert code == 1
        assert "site-name.env" in capsys.readouterr().err
        assert api.requests == []

    def test_invalid_domain(self, capsys) -> None:
        api = ScriptedApi([status_payload()])

        code = run(["challenge-file", "site.live", "not a domain"], api)

        assert code == 1
        assert api.requests == []


class TestVerifyCommands:
    """verify-file and verify-dns-txt drive the poller to a terminal state."""

    def test_verify_success(self, capsys) -> None:
        api = ScriptedApi([
            status_payload(preprovision_status="failed"),
            status_payload(preprovision_status="in_progress"),
            status_payload(preprovision_status="success"),
        ])
        clock = FakeClock()

        code = run(["verify-file", "site.live", "example.com"], api, clock)

        out = capsys.readouterr().out
        assert code == 0
        assert "Ownership verification is complete!" in out
        assert "Global CDN" in out
        assert len(api.posts) == 1
        assert api.posts[0].content == b"challenge_type=http-01&client=acme-ownership"
        assert clock.sleeps == [10.0, 10.0]

    def test_verify_already_complete(self, capsys) -> None:
        api = ScriptedApi([status_payload(preprovision_status="success")])

        code = run(["verify-dns-txt", "site.live", "example.com"], api)

        assert code == 0
        assert "Ownership verification for example.com is complete!" in capsys.readouterr().out
        assert api.posts == []

    def test_verify_noop(self, capsys) -> None:
        api = ScriptedApi([status_payload(ownership_status="not_required")])

        code = run(["verify-file", "site.live", "example.com"], api)

        assert code == 0
        assert "is not necessary" in capsys.readouterr().out
        assert api.posts == []

    def test_verify_failure_prints_problem(self, capsys) -> None:
        problem = {
            "PantheonTitle": "Challenge not served",
            "PantheonDetail": "The file returned 404.",
            "ProblemType": "urn:ietf:params:acme:error:unauthorized",
            "SupportReference": "ref-42",
        }
        api = ScriptedApi([
            status_payload(preprovision_status="failed"),
            status_payload(preprovision_status="failed", problem=problem),
        ])

        code = run(["verify-file", "site.live", "example.com"], api)

        captured = capsys.readouterr()
        assert code == 1
        assert "Challenge not served" in captured.out
        assert "urn:ietf:params:acme:error:unauthorized" in captured.out
        assert 'reference "ref-42"' in captured.out
        assert "Ownership verification was not successful." in captured.err

    def test_verify_timeout_uses_flags(self, capsys) -> None:
        api = ScriptedApi([status_payload(preprovision_status="in_progress")])
        clock = FakeClock()

        code = run([
            "verify-file", "site.live", "example.com", "--interval", "2", "--max-attempts", "3",
        ], api, clock)

        assert code == 1
        assert clock.sleeps == [2.0, 2.0, 2.0]
        assert "did not finish after 3 status checks" in capsys.readouterr().out

    def test_verify_unavailable_message(self, capsys) -> None:
        api = ScriptedApi([status_payload(
            ownership_status="unavailable", message="Rate limited, try later.",
        )])

        code = run(["verify-file", "site.live", "example.com"], api)

        assert code == 1
        assert "Rate limited, try later." in capsys.readouterr().err
        assert api.posts == []

    def test_verify_cancelled_by_interrupt(self, capsys) -> None:
        class InterruptingClock(FakeClock):
            def sleep(self, seconds, token=None):
                raise KeyboardInterrupt

        api = ScriptedApi([status_payload(preprovision_status="in_progress")])

        code = run(["verify-file", "site.live", "example.com"], api, InterruptingClock())

        assert code == EXIT_CANCELLED
        assert "cancelled" in capsys.readouterr().err

    def test_german_output(self, capsys) -> None:
        api = ScriptedApi([status_payload(ownership_status="completed")])

        code = run(["verify-file", "site.live", "example.com", "--language", "de"], api)

        assert code == 0
        assert "ist abgeschlossen" in capsys.readouterr().out


class TestStatusCommand:
    def test_status_summary(self, capsys) -> None:
        api = ScriptedApi([status_payload(ownership_status="required")])

        code = run(["status", "site.live", "example.com"], api)

        assert code == 0
        assert "has not completed its pre-authentication checks" in capsys.readouterr().out

    def test_unknown_status(self, capsys) -> None:
        api = ScriptedApi([status_payload(ownership_status="mystery")])

        code = run(["status", "site.live", "example.com"], api)

        assert code == 0
        assert 'Unknown https verification status "mystery"' in capsys.readouterr().out


class TestConfigCommand:
    def test_init_show_validate(self, tmp_path, capsys) -> None:
        path = tmp_path / "conf" / "config.json"
        api = ScriptedApi([{}])

        assert run(["config", "init", "--path", str(path)], api) == 0
        assert path.exists()
        assert run(["config", "init", "--path", str(path)], api) == 1
        assert run(["config", "show", "--path", str(path)], api) == 0
        assert run(["config", "validate", "--path", str(path)], api) == 0

        out = capsys.readouterr().out
        assert "Max attempts: 15" in out
        assert "is valid" in out

    def test_validate_rejects_plain_http(self, tmp_path, capsys) -> None:
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"api": {"base_url": "http://insecure.example"}}), encoding="utf-8")

        code = run(["config", "validate", "--path", str(path)], ScriptedApi([{}]))

        assert code == 1
        assert "HTTPS" in capsys.readouterr().err

    def test_explicit_config_file_is_used(self, tmp_path, capsys) -> None:
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"polling": {"interval_seconds": 1.5}}), encoding="utf-8")
        api = ScriptedApi([
            status_payload(preprovision_status="in_progress"),
            status_payload(preprovision_status="success"),
        ])
        clock = FakeClock()

        code = run(["verify-file", "site.live", "example.com", "--config", str(path)], api, clock)

        assert code == 0
        assert clock.sleeps == [1.5]

    def test_missing_explicit_config_fails(self, tmp_path, capsys) -> None:
        code = run(
            ["status", "site.live", "example.com", "--config", str(tmp_path / "absent.json")],
            ScriptedApi([{}]),
        )

        assert code == 1
        assert "Could not load config" in capsys.readouterr().err

    def test_token_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv(cli.ENV_TOKEN, "secret-token")
        api = ScriptedApi([status_payload(ownership_status="completed")])

        run(["status", "site.live", "example.com"], api)

        assert api.requests[0].headers["Authorization"] == "Bearer secret-token"


class TestRenderFailureReport:
    """Failure reports turn into notices and warnings."""

    def test_generic_report(self) -> None:
        report = FailureReport(
            domain="example.com",
            challenge_type=ChallengeType.HTTP_01,
            state=VerificationState.FAILED,
            docs_link="https://docs.example.test",
        )

        notices, warnings = render_failure_report(report, "en", "site.live")

        assert notices == [
            "Double-check that your challenge is being served correctly.",
            "See https://docs.example.test for assistance",
            "or contact support.",
        ]
        assert warnings == []

    def test_dns_change_warning_includes_new_record(self) -> None:
        record = DnsTxtRecord(
            record_line='_acme-challenge.example.com 300 IN TXT "new"',
            record_fields={},
        )
        report = FailureReport(
            domain="example.com",
            challenge_type=ChallengeType.DNS_01,
            state=VerificationState.FAILED,
            docs_link="https://docs.example.test",
            problem=ProblemDetail(title="Wrong record"),
            challenge_change=ChallengeChange(
                challenge_type=ChallengeType.DNS_01,
                previous_value="old",
                current_value="new",
                dns_record=record,
            ),
        )

        notices, warnings = render_failure_report(report, "en", "site.live")

        assert notices[0] == "Wrong record"
        assert warnings[0] == "The old challenge cannot be tried again."
        assert warnings[1].endswith('_acme-challenge.example.com 300 IN TXT "new"')

    def test_http_change_warning_names_regeneration_command(self) -> None:
        report = FailureReport(
            domain="example.com",
            challenge_type=ChallengeType.HTTP_01,
            state=VerificationState.TIMED_OUT,
            docs_link="https://docs.example.test",
            attempts=15,
            challenge_change=ChallengeChange(
                challenge_type=ChallengeType.HTTP_01,
                previous_value="old",
                current_value="new",
            ),
        )

        notices, warnings = render_failure_report(report, "en", "site.live")

        assert notices[0] == "Ownership verification did not finish after 15 status checks."
        assert "acme-ownership challenge-file site.live example.com" in warnings[1]
