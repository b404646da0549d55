import pytest

from bibliogest import accounts
from bibliogest.accounts import LoginResult, RegisterResult
from bibliogest.schemas import Role, User


def _user(user_id: str, role: Role = Role.CLIENT, password: str = 'password123') -> User:
    return User(id=user_id, role=role, password=password)


def test_insert_stores_hash_and_role(store) -> None:
    accounts.insert(store, _user('TestUser'))

    stored = store.users.find_one({'_id': 'TestUser'})

    assert stored is not None
    assert stored['password_hash'] == accounts.hash_password('password123')
    assert stored['role'] == int(Role.CLIENT)
    assert 'password123' not in stored.values()
    assert 'password' not in stored


def test_insert_overwrites_existing_user(store) -> None:
    accounts.insert(store, _user('TestUser'))
    accounts.insert(store, _user('TestUser', role=Role.LIBRARIAN))

    assert store.users.count_documents({}) == 1
    assert accounts.find_by_id(store, 'TestUser').role == Role.LIBRARIAN


def test_hash_password_is_deterministic() -> None:
    assert accounts.hash_password('secret') == accounts.hash_password('secret')
    assert accounts.hash_password('secret') != accounts.hash_password('Secret')
    assert accounts.hash_password('secret') != 'secret'


def test_login_returns_true_for_valid_user(store) -> None:
    user = _user('TestUser')
    accounts.insert(store, user)

    assert accounts.login(store, user) is True


def test_login_returns_false_for_unknown_user(store) -> None:
    assert accounts.login(store, _user('NonExistentUser')) is False


def test_login_returns_false_for_wrong_password(store) -> None:
    accounts.insert(store, _user('TestUser'))

    assert accounts.login(store, _user('TestUser', password='nope')) is False


def test_register_new_user_returns_created(store) -> None:
    result = accounts.register(store, _user('NewUser'))

    assert result == RegisterResult.CREATED
    assert result == 1
    stored = accounts.find_by_id(store, 'NewUser')
    assert stored.product_count == 0
    assert stored.password_hash == accounts.hash_password('password123')


def test_register_existing_user_returns_already_exists(store) -> None:
    accounts.insert(store, _user('ExistingUser'))

    result = accounts.register(store, _user('ExistingUser', password='other'))

    assert result == RegisterResult.ALREADY_EXISTS
    assert result == 0
    assert accounts.verify_login(store, 'ExistingUser', 'password123') == LoginResult.SUCCESS


def test_delete_removes_user(store) -> None:
    user = _user('UserToDelete')
    accounts.insert(store, user)

    assert accounts.delete(store, user) == 1
    assert accounts.find_by_id(store, 'UserToDelete') is None
    assert accounts.delete(store, user) == 0


def test_find_by_id_returns_matching_user(store) -> None:
    accounts.insert(store, _user('UserToFind'))

    found = accounts.find_by_id(store, 'UserToFind')

    assert found is not None
    assert found.id == 'UserToFind'
    assert found.password is None


def test_list_all_returns_every_user(store) -> None:
    accounts.insert(store, _user('User1'))
    accounts.insert(store, _user('User2'))

    assert [user.id for user in accounts.list_all(store)] == ['User1', 'User2']


def test_query_filters_by_id_and_role(store) -> None:
    accounts.insert(store, _user('User1'))
    accounts.insert(store, _user('User2', role=Role.LIBRARIAN))

    by_id = accounts.query(store, 'User1', Role.UNDEFINED)
    by_role = accounts.query(store, '', Role.LIBRARIAN)
    by_substring = accounts.query(store, 'user')
    escaped = accounts.query(store, 'User.')

    assert [user.id for user in by_id] == ['User1']
    assert [user.id for user in by_role] == ['User2']
    assert [user.id for user in by_substring] == ['User1', 'User2']
    assert escaped == []


def test_promote_role_moves_one_step_up(store) -> None:
    user = _user('UserToPromote')
    accounts.insert(store, user)

    assert accounts.promote_role(store, user) == 1
    assert user.role == Role.LIBRARIAN
    assert accounts.find_by_id(store, 'UserToPromote').role == Role.LIBRARIAN


def test_promote_role_is_noop_at_top(store) -> None:
    user = _user('Admin', role=Role.ADMINISTRATOR)
    accounts.insert(store, user)

    assert accounts.promote_role(store, user) == 0
    assert accounts.find_by_id(store, 'Admin').role == Role.ADMINISTRATOR


def test_promote_undefined_user_becomes_client(store) -> None:
    user = _user('Newcomer', role=Role.UNDEFINED)
    accounts.insert(store, user)

    assert accounts.promote_role(store, user) == 1
    assert accounts.find_by_id(store, 'Newcomer').role == Role.CLIENT


def test_demote_role_moves_one_step_down(store) -> None:
    user = _user('UserToDemote', role=Role.LIBRARIAN)
    accounts.insert(store, user)

    assert accounts.demote_role(store, user) == 1
    assert accounts.find_by_id(store, 'UserToDemote').role == Role.CLIENT


def test_demote_role_is_noop_at_floor(store) -> None:
    user = _user('Floor', role=Role.UNDEFINED)
    accounts.insert(store, user)

    assert accounts.demote_role(store, user) == 0
    assert accounts.find_by_id(store, 'Floor').role == Role.UNDEFINED


def test_demote_client_becomes_undefined(store) -> None:
    user = _user('Client')
    accounts.insert(store, user)

    assert accounts.demote_role(store, user) == 1
    assert accounts.find_by_id(store, 'Client').role == Role.UNDEFINED


@pytest.mark.parametrize('role', [Role.UNDEFINED, Role.CLIENT, Role.LIBRARIAN])
def test_promote_is_undone_by_demote(store, role: Role) -> None:
    user = _user('Ladder', role=role)
    accounts.insert(store, user)

    assert accounts.promote_role(store, user) == 1
    assert accounts.demote_role(store, user) == 1
    assert accounts.find_by_id(store, 'Ladder').role == role


def test_promote_then_demote_restores_role(store) -> None:
    user = _user('RoundTrip', role=Role.LIBRARIAN)
    accounts.insert(store, user)

    accounts.promote_role(store, user)
    accounts.demote_role(store, user)

    assert accounts.find_by_id(store, 'RoundTrip').role == Role.LIBRARIAN


def test_role_changes_on_missing_user_return_zero(store) -> None:
    ghost = _user('Ghost')

    assert accounts.promote_role(store, ghost) == 0
    assert accounts.demote_role(store, ghost) == 0


def test_reset_password_generates_new_password(store) -> None:
    user = _user('UserToChangePassword')
    accounts.insert(store, user)

    result = accounts.reset_password(store, user)

    assert result == 1
    assert user.password != 'password123'
    stored = accounts.find_by_id(store, 'UserToChangePassword')
    assert stored.password_hash != accounts.hash_password('password123')
    assert accounts.verify_login(store, 'UserToChangePassword', user.password) == LoginResult.SUCCESS


def test_change_password_stores_new_hash(store) -> None:
    user = _user('UserToUpdatePassword')
    accounts.insert(store, user)

    result = accounts.change_password(store, user, 'newpassword123')

    assert result == 1
    stored = accounts.find_by_id(store, 'UserToUpdatePassword')
    assert stored.password_hash == accounts.hash_password('newpassword123')


def test_verify_login_distinguishes_outcomes(store) -> None:
    accounts.insert(store, _user('LoginUser'))

    assert accounts.verify_login(store, 'LoginUser', 'password123') == 1
    assert accounts.verify_login(store, 'LoginUser', 'wrongpassword') == -2
    assert accounts.verify_login(store, 'NonExistentUser', 'password123') == -1


def test_increment_product_count_returns_new_count(store) -> None:
    user = _user('UserToIncrementProduct')
    accounts.insert(store, user)

    assert accounts.increment_product_count(store, user) == 1
    assert accounts.increment_product_count(store, user) == 2
    assert accounts.find_by_id(store, 'UserToIncrementProduct').product_count == 2


def test_increment_product_count_missing_user_returns_none(store) -> None:
    assert accounts.increment_product_count(store, _user('Ghost')) is None


def test_generate_password_uses_requested_length() -> None:
    password = accounts.generate_password(16)

    assert len(password) == 16
    assert set(password) <= set(accounts.PASSWORD_ALPHABET)
