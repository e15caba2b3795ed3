"""Tests for repository list/create/update/delete operations."""

from __future__ import annotations

from unittest.mock import MagicMock
from urllib.parse import parse_qs, urlsplit

import pytest

from bitbucket_client.confirmation import ConfirmImpact, never_confirm
from bitbucket_client.error_handling import (
    NoChangesSpecifiedError, NotAuthenticatedError, ValidationError
)
from bitbucket_client.models import ForkPolicy, RepositoryChanges
from bitbucket_client.repository import RepositoryManager

from conftest import API, make_response, requested


class TestListRepositories:
    def test_single_repository_by_slug(self, repositories, http, logged_in):
        http.request.return_value = make_response(200, {"slug": "widgets"})

        result = repositories.list_repositories(slug="widgets")

        assert result == [{"slug": "widgets"}]
        assert requested(http) == [("GET", API + "repositories/acme/widgets")]

    def test_project_filter_is_paginated(self, repositories, http, logged_in):
        http.request.side_effect = [
            make_response(200, {"values": [{"slug": "a"}], "next": API + "repositories/acme?page=2"}),
            make_response(200, {"values": [{"slug": "b"}]}),
        ]

        result = repositories.list_repositories(project_key="KEY")

        assert [r["slug"] for r in result] == ["a", "b"]
        assert requested(http)[0] == ("GET", API + "repositories/acme?q=project.key=%22KEY%22")

    def test_all_repositories(self, repositories, http, logged_in):
        http.request.return_value = make_response(200, {"values": [{"slug": "a"}, {"slug": "b"}]})

        assert len(repositories.list_repositories()) == 2
        assert requested(http) == [("GET", API + "repositories/acme")]

    def test_slug_takes_precedence_over_project(self, repositories, http, logged_in):
        http.request.return_value = make_response(200, {"slug": "widgets"})
        repositories.list_repositories(slug="widgets", project_key="KEY")
        assert requested(http) == [("GET", API + "repositories/acme/widgets")]

    def test_explicit_team_overrides_selection(self, repositories, http, logged_in):
        http.request.return_value = make_response(200, {"values": []})
        repositories.list_repositories(team="globex")
        assert requested(http) == [("GET", API + "repositories/globex")]

    def test_no_team_selected(self, repositories, http, logged_in):
        logged_in.selected_team = None
        with pytest.raises(ValidationError) as exc_info:
            repositories.list_repositories()
        assert exc_info.value.field == "team"
        http.request.assert_not_called()

    def test_requires_login(self, repositories, http):
        with pytest.raises(NotAuthenticatedError):
            repositories.list_repositories()


class TestGetRepository:
    def test_get_repository(self, repositories, http, logged_in):
        http.request.return_value = make_response(200, {"slug": "widgets", "full_name": "acme/widgets"})

        assert repositories.get_repository("widgets")["full_name"] == "acme/widgets"
        assert requested(http) == [("GET", API + "repositories/acme/widgets")]

    def test_explicit_team(self, repositories, http, logged_in):
        http.request.return_value = make_response(200, {"slug": "widgets"})
        repositories.get_repository("widgets", team="globex")
        assert requested(http) == [("GET", API + "repositories/globex/widgets")]

    def test_blank_slug(self, repositories, http, logged_in):
        with pytest.raises(ValidationError) as exc_info:
            repositories.get_repository(" ")
        assert exc_info.value.field == "slug"
        http.request.assert_not_called()


class TestCreateRepository:
    def test_default_body(self, repositories, http, logged_in):
        http.request.return_value = make_response(200, {"slug": "NewRepo"})

        result = repositories.create_repository("NewRepo")

        assert result == {"slug": "NewRepo"}
        call = http.request.call_args
        assert (call.args[0], call.args[1]) == ("POST", API + "repositories/acme/NewRepo")
        assert call.kwargs["json"] == {
            "scm": "git",
            "is_private": True,
            "description": "",
            "language": "",
            "fork_policy": "no_forks",
        }

    def test_body_with_project_and_settings(self, repositories, http, logged_in):
        http.request.return_value = make_response(200, {})
        changes = RepositoryChanges(
            project_key="PRJ",
            is_private=False,
            description="Widgets service",
            language="Python",
            fork_policy="allow_forks",
        )

        repositories.create_repository("widgets", changes)

        body = http.request.call_args.kwargs["json"]
        assert list(body) == ["scm", "is_private", "description", "language", "fork_policy", "project"]
        assert body["project"] == {"key": "PRJ"}
        assert body["is_private"] is False
        assert body["language"] == "python"
        assert body["fork_policy"] == "allow_forks"

    def test_slug_is_required(self, repositories, http, logged_in):
        with pytest.raises(ValidationError):
            repositories.create_repository("  ")
        http.request.assert_not_called()

    def test_dry_run_sends_nothing(self, repositories, http, logged_in):
        assert repositories.create_repository("NewRepo", dry_run=True) is None
        http.request.assert_not_called()

    def test_declined_confirmation_sends_nothing(self, repositories, http, logged_in):
        assert repositories.create_repository("NewRepo", confirm=never_confirm) is None
        http.request.assert_not_called()

    def test_confirmation_is_asked_with_medium_impact(self, client, http, logged_in):
        confirm = MagicMock(return_value=True)
        http.request.return_value = make_response(200, {})

        RepositoryManager(client, confirm).create_repository("NewRepo")

        action, impact = confirm.call_args.args
        assert "acme/NewRepo" in action
        assert impact is ConfirmImpact.MEDIUM


class TestUpdateRepository:
    def test_no_changes(self, repositories, http, logged_in):
        with pytest.raises(NoChangesSpecifiedError):
            repositories.update_repository("widgets", RepositoryChanges())
        http.request.assert_not_called()

    def test_no_changes_is_checked_before_confirmation(self, client, http, logged_in):
        confirm = MagicMock(return_value=True)
        with pytest.raises(NoChangesSpecifiedError):
            RepositoryManager(client, confirm).update_repository("widgets", RepositoryChanges())
        confirm.assert_not_called()

    def test_sparse_body(self, repositories, http, logged_in):
        http.request.return_value = make_response(200, {"slug": "widgets"})

        repositories.update_repository("widgets", RepositoryChanges(description="New text"))

        call = http.request.call_args
        assert (call.args[0], call.args[1]) == ("PUT", API + "repositories/acme/widgets")
        assert call.kwargs["json"] == {"description": "New text"}

    def test_explicit_empty_and_false_values_are_sent(self, repositories, http, logged_in):
        http.request.return_value = make_response(200, {})

        repositories.update_repository("widgets", RepositoryChanges(is_private=False, description="", language=""))

        assert http.request.call_args.kwargs["json"] == {"is_private": False, "description": "", "language": ""}

    def test_full_body_key_order(self, repositories, http, logged_in):
        http.request.return_value = make_response(200, {})
        changes = RepositoryChanges(
            project_key="PRJ",
            is_private=True,
            description="d",
            language="go",
            fork_policy=ForkPolicy.NO_PUBLIC_FORKS,
        )

        repositories.update_repository("widgets", changes)

        body = http.request.call_args.kwargs["json"]
        assert list(body) == ["project", "is_private", "description", "language", "fork_policy"]
        assert body["fork_policy"] == "no_public_forks"

    def test_dry_run(self, repositories, http, logged_in):
        assert repositories.update_repository("widgets", RepositoryChanges(language="go"), dry_run=True) is None
        http.request.assert_not_called()


class TestDeleteRepository:
    def test_delete(self, repositories, http, logged_in):
        http.request.return_value = make_response(204)

        assert repositories.delete_repository("widgets") is True
        assert requested(http) == [("DELETE", API + "repositories/acme/widgets")]

    def test_redirect_adds_single_query_parameter(self, repositories, http, logged_in):
        http.request.return_value = make_response(204)
        target = "https://bitbucket.org/acme/widgets-v2"

        repositories.delete_repository("widgets", redirect_to=target)

        url = requested(http)[0][1]
        parts = urlsplit(url)
        assert f"{parts.scheme}://{parts.netloc}{parts.path}" == API + "repositories/acme/widgets"
        assert parse_qs(parts.query) == {"redirect_to": [target]}

    def test_confirmation_is_asked_with_high_impact(self, client, http, logged_in):
        confirm = MagicMock(return_value=False)

        assert RepositoryManager(client, confirm).delete_repository("widgets") is False

        assert confirm.call_args.args[1] is ConfirmImpact.HIGH
        http.request.assert_not_called()

    def test_dry_run(self, repositories, http, logged_in):
        assert repositories.delete_repository("widgets", dry_run=True) is False
        http.request.assert_not_called()


class TestRepositoryChanges:
    def test_invalid_fork_policy(self):
        with pytest.raises(ValidationError) as exc_info:
            RepositoryChanges(fork_policy="sometimes")
        assert exc_info.value.field == "fork_policy"
        assert "no_forks" in exc_info.value.allowed

    def test_invalid_language(self):
        with pytest.raises(ValidationError) as exc_info:
            RepositoryChanges(language="klingon")
        assert exc_info.value.field == "language"

    def test_language_is_normalized(self):
        assert RepositoryChanges(language=" C# ").language == "c#"

    def test_empty_changes(self):
        assert RepositoryChanges().is_empty
        assert not RepositoryChanges(is_private=False).is_empty
