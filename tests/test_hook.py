"""Tests for the per-push pipeline."""

import json
from pathlib import Path

import httpx
import pytest

from fakes import ZERO, FakeRepository, RecordingTransport, commit
from pushnote.config import Settings
from pushnote.core.records import log_format
from pushnote.hook import PushNotifier, RepoContext
from pushnote.models import RefUpdateEvent
from pushnote.transports import SlackWebhookTransport

OLD = "1" * 40
NEW = "2" * 40


def make_notifier(repo, transport, context=None, **settings):
    return PushNotifier(
        Settings(**settings),
        repo,
        transport,
        context or RepoContext(name="myrepo"),
    )


def sent_payloads(transport):
    return [json.loads(p) for p in transport.sent]


@pytest.fixture
def update_repo():
    return FakeRepository(
        objects={OLD: "commit", NEW: "commit"},
        logs={f"{OLD}..{NEW}": [commit(3, "carol"), commit(2, "bob"), commit(1, "alice")]},
    )


class TestExamples:
    def test_branch_create(self, transport):
        repo = FakeRepository(
            objects={"a1b2c3d": "commit"},
            logs={"HEAD..a1b2c3d": [commit(1)]},
        )
        notifier = make_notifier(repo, transport)
        notifier.run([f"{ZERO} a1b2c3d refs/heads/main\n"])

        [payload] = sent_payloads(transport)
        assert payload["text"] == "New branch *main* has been created in myrepo"
        assert repo.log_calls[0][0] == "HEAD..a1b2c3d"
        assert len(payload["attachments"]) == 1

    def test_branch_delete(self, transport):
        repo = FakeRepository(objects={"a1b2c3d": "commit"})
        notifier = make_notifier(repo, transport, show_only_last_commit=True)
        notifier.run([f"a1b2c3d {ZERO} refs/heads/old"])

        [payload] = sent_payloads(transport)
        assert payload == {"text": "Branch *old* has been deleted from myrepo"}
        assert repo.log_calls == []

    def test_update_three_commits(self, update_repo, transport):
        notifier = make_notifier(update_repo, transport)
        notifier.run([f"{OLD} {NEW} refs/heads/main"])

        [payload] = sent_payloads(transport)
        assert payload["text"] == "3 new commits *pushed* to *main* in myrepo"
        titles = [a["fields"][0]["title"] for a in payload["attachments"]]
        assert titles == ["carol", "bob", "alice"]

    def test_update_one_commit_only_last(self, transport):
        repo = FakeRepository(
            objects={OLD: "commit", NEW: "commit"},
            logs={f"{OLD}..{NEW}": [commit(1)]},
        )
        notifier = make_notifier(repo, transport, show_only_last_commit=True)
        notifier.run([f"{OLD} {NEW} refs/heads/main"])

        [payload] = sent_payloads(transport)
        assert payload["text"].endswith(", showing last commit:")
        assert len(payload["attachments"]) == 1

    def test_tracking_branch_skipped_and_run_continues(self, transport):
        repo = FakeRepository(
            objects={OLD: "commit", NEW: "commit"},
            logs={f"{OLD}..{NEW}": [commit(1)]},
        )
        notifier = make_notifier(repo, transport)
        sent = notifier.run([
            f"{OLD} {NEW} refs/remotes/origin/main",
            f"{OLD} {NEW} refs/heads/main",
        ])

        assert sent == 1
        [payload] = sent_payloads(transport)
        assert "*main*" in payload["text"]


class TestPushNotifier:
    def test_build_returns_none_when_ignored(self, transport):
        notifier = make_notifier(FakeRepository(), transport)
        assert notifier.build(RefUpdateEvent(OLD, NEW, "refs/heads/main")) is None
        assert transport.sent == []

    def test_only_last_limits_log_read_but_not_count(self, update_repo, transport):
        notifier = make_notifier(update_repo, transport, show_only_last_commit=True)
        payload = notifier.build(RefUpdateEvent(OLD, NEW, "refs/heads/main"))

        assert payload.header == "3 new commits *pushed* to *main* in myrepo, showing last one:"
        assert len(payload.attachments) == 1
        assert update_repo.log_calls[0][2] == 1

    def test_full_commit_format(self, update_repo, transport):
        notifier = make_notifier(update_repo, transport, show_full_commit=True)
        notifier.build(RefUpdateEvent(OLD, NEW, "refs/heads/main"))
        assert update_repo.log_calls[0][1] == log_format(full_body=True)

    def test_branch_filter(self, update_repo, transport):
        notifier = make_notifier(update_repo, transport, branch_regexp="^release/")
        assert notifier.run([f"{OLD} {NEW} refs/heads/main"]) == 0
        assert transport.sent == []

    def test_overrides_in_payload(self, update_repo, transport):
        notifier = make_notifier(update_repo, transport, channel="#git", icon_emoji=":ghost:")
        notifier.run([f"{OLD} {NEW} refs/heads/main"])
        [payload] = sent_payloads(transport)
        assert payload["channel"] == "#git"
        assert payload["icon_emoji"] == ":ghost:"
        assert "username" not in payload

    def test_links_when_configured(self, update_repo, transport):
        notifier = make_notifier(
            update_repo,
            transport,
            RepoContext(name="myrepo", repo_path="myrepo.git"),
            changeset_url_pattern="https://web/%repo_path%/c/%rev_hash%",
            compare_url_pattern="https://web/%repo_path%/compare/%old_rev_hash%..%new_rev_hash%",
        )
        notifier.run([f"{OLD} {NEW} refs/heads/main"])
        [payload] = sent_payloads(transport)
        assert payload["text"] == (
            f"<https://web/myrepo.git/compare/{OLD}..{NEW}|3 new commits> *pushed* to *main* in myrepo"
        )
        assert payload["attachments"][0]["fields"][0]["value"].startswith("<https://web/myrepo.git/c/")

    def test_no_links_outside_repos_root(self, update_repo, transport):
        notifier = make_notifier(
            update_repo,
            transport,
            RepoContext(name="myrepo", repo_path=None),
            changeset_url_pattern="https://web/%repo_path%/c/%rev_hash%",
        )
        notifier.run([f"{OLD} {NEW} refs/heads/main"])
        [payload] = sent_payloads(transport)
        assert "<" not in payload["attachments"][0]["fields"][0]["value"]

    def test_unreadable_log_sends_header_only(self, transport):
        repo = FakeRepository(objects={NEW: "commit"})
        notifier = make_notifier(repo, transport)
        notifier.run([f"{ZERO} {NEW} refs/tags/v1.0"])
        [payload] = sent_payloads(transport)
        assert payload == {"text": "New tag *v1.0* has been created in myrepo"}

    def test_malformed_and_blank_lines_skipped(self, update_repo, transport):
        notifier = make_notifier(update_repo, transport)
        sent = notifier.run(["\n", "only two\n", f"{OLD} {NEW} refs/heads/main\n"])
        assert sent == 1

    def test_events_processed_in_input_order(self, transport):
        repo = FakeRepository(
            objects={OLD: "commit", NEW: "commit"},
            logs={f"HEAD..{NEW}": [commit(1)]},
        )
        notifier = make_notifier(repo, transport)
        notifier.run([
            f"{ZERO} {NEW} refs/heads/b",
            f"{OLD} {ZERO} refs/heads/a",
        ])
        texts = [p["text"] for p in sent_payloads(transport)]
        assert texts == [
            "New branch *b* has been created in myrepo",
            "Branch *a* has been deleted from myrepo",
        ]

    def test_failed_delivery_not_counted(self, update_repo):
        transport = RecordingTransport(ok=False)
        notifier = make_notifier(update_repo, transport)
        assert notifier.run([f"{OLD} {NEW} refs/heads/main"]) == 0
        assert len(transport.sent) == 1

    def test_bad_webhook_url_does_not_stop_batch(self, update_repo):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        transport = SlackWebhookTransport("https://hooks.example.com/services/T0/B0/x\n", client=client)
        notifier = make_notifier(update_repo, transport)
        lines = [f"{OLD} {NEW} refs/heads/main", f"{OLD} {NEW} refs/heads/develop"]

        assert notifier.run(lines) == 0
        assert requests == []
        assert [call[0] for call in update_repo.log_calls] == [f"{OLD}..{NEW}"] * 2


class TestRepoContext:
    def test_bare_repo_name(self):
        ctx = RepoContext.detect(Path("/srv/git/project.git"), Settings(), env={})
        assert ctx.name == "project"
        assert ctx.repo_path is None

    def test_dot_git_dir_uses_parent(self):
        ctx = RepoContext.detect(Path("/home/me/work/project/.git"), Settings(), env={})
        assert ctx.name == "project"

    def test_gitolite_repo_name(self):
        ctx = RepoContext.detect(Path("/srv/git/x.git"), Settings(), env={"GL_REPO": "team/x"})
        assert ctx.name == "team/x"

    def test_nice_name_wins(self):
        settings = Settings(repo_nice_name="Project X")
        ctx = RepoContext.detect(Path("/srv/git/x.git"), settings, env={"GL_REPO": "team/x"})
        assert ctx.name == "Project X"

    def test_repo_path_under_root(self):
        settings = Settings(repos_root="/srv/git/")
        ctx = RepoContext.detect(Path("/srv/git/team/x.git"), settings, env={})
        assert ctx.repo_path == "team/x.git"

    def test_repo_path_from_objects_dir(self):
        settings = Settings(repos_root="/srv/git")
        ctx = RepoContext.detect(Path("/srv/git/x.git/objects"), settings, env={})
        assert ctx.repo_path == "x.git"

    def test_repo_path_outside_root(self):
        settings = Settings(repos_root="/srv/git")
        ctx = RepoContext.detect(Path("/tmp/x.git"), settings, env={})
        assert ctx.repo_path is None

    def test_sibling_directory_is_outside_root(self):
        settings = Settings(repos_root="/srv/git")
        ctx = RepoContext.detect(Path("/srv/git-mirror/team/app.git"), settings, env={})
        assert ctx.repo_path is None

    def test_repo_at_root_has_empty_path(self):
        settings = Settings(repos_root="/srv/git")
        ctx = RepoContext.detect(Path("/srv/git"), settings, env={})
        assert ctx.repo_path == ""
