"""Tests for InvitationService sending, batching and redemption."""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.exceptions import (
    BusinessRuleException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from src.models.enums import UserRole
from src.models.invitation import Invitation, InvitationBatch
from src.models.organization_membership import OrganizationMembership
from src.modules.invitation.constants import INVITATION_TOKEN_LENGTH
from src.modules.invitation.service import InvitationService, generate_token

ORG_ID = uuid.uuid4()
INVITER_ID = uuid.uuid4()


def _result(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    result.first.return_value = value
    result.scalars.return_value.all.return_value = value
    return result


def _make_db(*results):
    db = AsyncMock()
    db.add = MagicMock()
    db.add_all = MagicMock()
    db.execute.side_effect = list(results)
    return db


def _org():
    org = MagicMock()
    org.id = ORG_ID
    return org


def _clear():
    """Results for an email with no membership and no open invitation."""
    return [_result(None), _result(None)]


def _make_invitation(email="bosun@northsea.com", expired=False):
    invitation = MagicMock()
    invitation.id = uuid.uuid4()
    invitation.email = email
    invitation.organization_id = ORG_ID
    invitation.role = UserRole.OPERATIONS
    invitation.is_expired.return_value = expired
    return invitation


def _make_user(email="bosun@northsea.com", current_org=None):
    user = MagicMock()
    user.id = uuid.uuid4()
    user.email = email
    user.current_organization_id = current_org
    return user


def test_generate_token_length():
    token = generate_token()
    assert len(token) == INVITATION_TOKEN_LENGTH
    assert token != generate_token()


# ---------------------------------------------------------------------------
# send_invitation
# ---------------------------------------------------------------------------


class TestSendInvitation:
    @pytest.mark.asyncio
    async def test_commits_before_dispatch(self):
        db = _make_db(_result(_org()), *_clear())
        calls = []
        db.commit.side_effect = lambda: calls.append("commit")
        dispatcher = MagicMock(side_effect=lambda *a: calls.append("dispatch"))
        svc = InvitationService(db, dispatcher=dispatcher)

        invitation = await svc.send_invitation(
            ORG_ID, INVITER_ID, "  Bosun@NorthSea.com ", UserRole.OPERATIONS, message="Welcome"
        )

        assert isinstance(invitation, Invitation)
        assert invitation.email == "bosun@northsea.com"
        assert invitation.metadata_extra == {"custom_message": "Welcome"}
        assert len(invitation.token) == INVITATION_TOKEN_LENGTH
        assert calls == ["commit", "dispatch"]
        dispatcher.assert_called_once_with(invitation, "Welcome", None)

    @pytest.mark.asyncio
    async def test_unknown_organization(self):
        db = _make_db(_result(None))
        svc = InvitationService(db, dispatcher=MagicMock())

        with pytest.raises(NotFoundException):
            await svc.send_invitation(ORG_ID, INVITER_ID, "a@b.com", UserRole.VIEWER)

    @pytest.mark.asyncio
    async def test_existing_member_conflicts(self):
        db = _make_db(_result(_org()), _result(uuid.uuid4()))
        dispatcher = MagicMock()
        svc = InvitationService(db, dispatcher=dispatcher)

        with pytest.raises(ConflictException, match="already a member"):
            await svc.send_invitation(ORG_ID, INVITER_ID, "a@b.com", UserRole.VIEWER)
        dispatcher.assert_not_called()

    @pytest.mark.asyncio
    async def test_open_invitation_conflicts(self):
        db = _make_db(_result(_org()), _result(None), _result((uuid.uuid4(),)))
        svc = InvitationService(db, dispatcher=MagicMock())

        with pytest.raises(ConflictException, match="pending invitation"):
            await svc.send_invitation(ORG_ID, INVITER_ID, "a@b.com", UserRole.VIEWER)

    @pytest.mark.asyncio
    async def test_dispatch_failure_deletes_invitation(self):
        db = _make_db(_result(_org()), *_clear())
        dispatcher = MagicMock(side_effect=ConnectionError("broker down"))
        svc = InvitationService(db, dispatcher=dispatcher)

        with pytest.raises(BusinessRuleException, match="Failed to send invitation"):
            await svc.send_invitation(ORG_ID, INVITER_ID, "a@b.com", UserRole.VIEWER)

        invitation = db.add.call_args.args[0]
        db.delete.assert_awaited_once_with(invitation)
        assert db.commit.await_count == 2


# ---------------------------------------------------------------------------
# bulk_invite
# ---------------------------------------------------------------------------


class TestBulkInvite:
    @pytest.mark.asyncio
    async def test_skips_invalid_entries_and_queues_rest(self):
        db = _make_db(
            _result(_org()),
            *_clear(),                    # first@northsea.com
            _result(uuid.uuid4()),        # member@northsea.com
        )
        dispatcher = MagicMock()
        svc = InvitationService(db, dispatcher=dispatcher)

        batch, queued, skipped = await svc.bulk_invite(
            ORG_ID,
            INVITER_ID,
            [
                {"email": "first@northsea.com", "role": "operations"},
                {"email": "not-an-email", "role": "viewer"},
                {"email": "FIRST@northsea.com", "role": "viewer"},
                {"email": "member@northsea.com", "role": "viewer"},
                {"email": "second@northsea.com", "role": "captain"},
            ],
            batch_name="Crew onboarding",
        )

        assert isinstance(batch, InvitationBatch)
        assert batch.name == "Crew onboarding"
        reasons = {(s["email"], s["reason"]) for s in skipped}
        assert ("not-an-email", "Invalid email address") in reasons
        assert ("first@northsea.com", "Duplicate email in request") in reasons
        assert ("member@northsea.com", "User is already a member of this organization") in reasons
        assert ("second@northsea.com", "Unknown role 'captain'") in reasons
        assert len(skipped) == 4
        assert [i.email for i in queued] == ["first@northsea.com"]
        assert dispatcher.call_count == 1
        assert batch.total_jobs == 1

    @pytest.mark.asyncio
    async def test_nothing_valid_raises_with_reasons(self):
        db = _make_db(_result(_org()))
        svc = InvitationService(db, dispatcher=MagicMock())

        with pytest.raises(ValidationException, match="No valid invitations") as exc_info:
            await svc.bulk_invite(ORG_ID, INVITER_ID, [{"email": "nope"}])

        assert exc_info.value.details == [{"email": "nope", "reason": "Invalid email address"}]
        db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_dispatch_failure_skips_single_entry(self):
        db = _make_db(_result(_org()), *_clear(), *_clear())
        dispatcher = MagicMock(side_effect=[None, ConnectionError("broker down")])
        svc = InvitationService(db, dispatcher=dispatcher)

        batch, queued, skipped = await svc.bulk_invite(
            ORG_ID, INVITER_ID, [{"email": "a@northsea.com"}, {"email": "b@northsea.com"}]
        )

        assert [i.email for i in queued] == ["a@northsea.com"]
        assert skipped == [{"email": "b@northsea.com", "reason": "Could not queue delivery"}]
        db.delete.assert_awaited_once()
        assert batch.total_jobs == 1


class TestCancelBatch:
    @pytest.mark.asyncio
    async def test_marks_batch_cancelled_once(self):
        batch = MagicMock()
        batch.cancelled_at = None
        db = _make_db(_result(batch))
        svc = InvitationService(db, dispatcher=MagicMock())

        result = await svc.cancel_batch(uuid.uuid4(), ORG_ID)

        assert result.cancelled_at is not None
        db.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_other_organizations_batch_not_found(self):
        db = _make_db(_result(None))
        svc = InvitationService(db, dispatcher=MagicMock())

        with pytest.raises(NotFoundException):
            await svc.cancel_batch(uuid.uuid4(), ORG_ID)


# ---------------------------------------------------------------------------
# accept / decline
# ---------------------------------------------------------------------------


class TestAccept:
    @pytest.mark.asyncio
    async def test_creates_membership_and_consumes_invitation(self):
        invitation = _make_invitation()
        user = _make_user()
        db = _make_db(_result(invitation), _result(user), _result(None))
        svc = InvitationService(db, dispatcher=MagicMock())

        membership = await svc.accept("token", user.id)

        assert isinstance(membership, OrganizationMembership)
        assert membership.organization_id == ORG_ID
        assert membership.role == UserRole.OPERATIONS
        assert user.current_organization_id == ORG_ID
        db.delete.assert_awaited_once_with(invitation)

    @pytest.mark.asyncio
    async def test_existing_membership_is_kept(self):
        invitation = _make_invitation()
        user = _make_user(current_org=uuid.uuid4())
        existing = MagicMock()
        db = _make_db(_result(invitation), _result(user), _result(existing))
        svc = InvitationService(db, dispatcher=MagicMock())

        assert await svc.accept("token", user.id) is existing
        db.add.assert_not_called()
        assert user.current_organization_id != ORG_ID

    @pytest.mark.asyncio
    async def test_expired_invitation_rejected(self):
        db = _make_db(_result(_make_invitation(expired=True)))
        svc = InvitationService(db, dispatcher=MagicMock())

        with pytest.raises(BusinessRuleException, match="expired"):
            await svc.accept("token", uuid.uuid4())
        db.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_different_email_forbidden(self):
        db = _make_db(_result(_make_invitation()), _result(_make_user(email="someone@else.com")))
        svc = InvitationService(db, dispatcher=MagicMock())

        with pytest.raises(ForbiddenException):
            await svc.accept("token", uuid.uuid4())

    @pytest.mark.asyncio
    async def test_used_token_not_found(self):
        db = _make_db(_result(None))
        svc = InvitationService(db, dispatcher=MagicMock())

        with pytest.raises(NotFoundException, match="already used"):
            await svc.accept("token", uuid.uuid4())


@pytest.mark.asyncio
async def test_decline_deletes_invitation():
    invitation = _make_invitation()
    db = _make_db(_result(invitation))
    svc = InvitationService(db, dispatcher=MagicMock())

    await svc.decline("token")

    db.delete.assert_awaited_once_with(invitation)
