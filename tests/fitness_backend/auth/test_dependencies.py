import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from fitness_backend.auth import jwt_handler
from fitness_backend.auth.dependencies import get_current_member, get_current_user, require_admin
from fitness_backend.models.user import User
from fitness_backend.routes.auth_routes import read_current_principal


def bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme='Bearer', credentials=token)


def test_access_token_round_trip_keeps_subject() -> None:
    token = jwt_handler.create_access_token('ayse@fitness.example', expires_minutes=5)

    payload = jwt_handler.decode_access_token(token)

    assert payload['sub'] == 'ayse@fitness.example'
    assert payload['exp'] > payload['iat']


def test_get_current_user_resolves_token_subject(db, gym) -> None:
    token = jwt_handler.create_access_token(' AYSE@fitness.example ')

    user = get_current_user(credentials=bearer(token), db=db)

    assert user.id == gym.member_user.id


def test_get_current_user_matches_mixed_case_stored_email(db, gym) -> None:
    mixed_case_user = User(email='Zeynep.Arslan@Fitness.example')
    db.add(mixed_case_user)
    db.commit()
    token = jwt_handler.create_access_token('zeynep.arslan@fitness.example')

    user = get_current_user(credentials=bearer(token), db=db)

    assert user.id == mixed_case_user.id


def test_get_current_user_rejects_garbage_token(db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=bearer('not-a-token'), db=db)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'Invalid token'


def test_get_current_user_rejects_expired_token(db, gym) -> None:
    token = jwt_handler.create_access_token('ayse@fitness.example', expires_minutes=-1)

    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=bearer(token), db=db)

    assert exception_info.value.status_code == 401


def test_get_current_user_rejects_unknown_user(db, gym) -> None:
    token = jwt_handler.create_access_token('ghost@fitness.example')

    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=bearer(token), db=db)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'User not found'


def test_require_admin_rejects_members(gym) -> None:
    with pytest.raises(HTTPException) as exception_info:
        require_admin(current_user=gym.member_user)

    assert exception_info.value.status_code == 403
    assert require_admin(current_user=gym.admin_user) is gym.admin_user


def test_get_current_member_resolves_member_profile(db, gym) -> None:
    member = get_current_member(current_user=gym.member_user, db=db)

    assert member.id == gym.member.id


@pytest.mark.parametrize(
    ('user_attr', 'detail'),
    [
        ('admin_user', 'Only members can book appointments.'),
        ('profileless_user', 'Create a member profile before booking appointments.'),
    ],
)
def test_get_current_member_rejects_non_members(db, gym, user_attr: str, detail: str) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_current_member(current_user=getattr(gym, user_attr), db=db)

    assert exception_info.value.status_code == 403
    assert exception_info.value.detail == detail


def test_read_current_principal_includes_member_id(db, gym) -> None:
    member_view = read_current_principal(current_user=gym.member_user, db=db)
    admin_view = read_current_principal(current_user=gym.admin_user, db=db)

    assert member_view.member_id == gym.member.id
    assert admin_view.member_id is None
    assert admin_view.role == 'admin'
