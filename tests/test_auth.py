from school_records.infrastructure.models import Account, Student
from school_records.infrastructure.security import PasswordHasher, create_refresh_token

from conftest import bearer

PASSWORD = "Secret#123"


def register(client, email="new@example.com", role="teacher", password=PASSWORD, name="New User"):
    return client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": password, "role": role},
    )


def test_register_user_success(client):
    """Тест успешной регистрации пользователя"""
    response = register(client)
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "new@example.com"
    assert data["role"] == "teacher"
    assert "id" in data
    assert "password_hash" not in data

def test_register_student_creates_linked_record(client, db):
    """У зарегистрированного студента появляется карточка ученика"""
    response = register(client, email="kid@example.com", role="student", name="Kid")
    assert response.status_code == 201
    account_id = response.json()["id"]
    record = db.query(Student).filter(Student.account_id == account_id).one()
    assert record.name == "Kid"
    assert record.age == 18
    assert record.class_id is None

def test_register_user_duplicate(client):
    """Тест регистрации с существующим email"""
    assert register(client).status_code == 201
    response = register(client)
    assert response.status_code == 409
    assert response.json()["detail"] == "User with this email already exists"

def test_register_weak_password(client):
    response = register(client, password="short")
    assert response.status_code == 400
    body = response.json()
    assert body["detail"] == "Password validation failed"
    messages = [e["message"] for e in body["errors"]]
    assert "Password must be at least 8 characters long" in messages
    assert all(e["field"] == "password" for e in body["errors"])

def test_register_user_invalid_email(client):
    """Тест регистрации с невалидным email"""
    response = register(client, email="invalid-email")
    assert response.status_code == 400
    assert response.json()["detail"] == "Validation failed"
    assert response.json()["errors"][0]["field"] == "email"

def test_register_unknown_role(client):
    assert register(client, role="janitor").status_code == 400

def test_login_success(client, db):
    """Тест успешного входа"""
    db.add(Account(name="Login", email="login@example.com",
                   password_hash=PasswordHasher().hash(PASSWORD), role="admin"))
    db.commit()
    response = client.post("/api/auth/login", json={"email": "login@example.com", "password": PASSWORD})
    assert response.status_code == 200
    data = response.json()
    assert data["access_token"]
    assert data["refresh_token"]
    assert data["token_type"] == "bearer"

def test_login_invalid_credentials(client):
    """Тест входа с неверными учетными данными"""
    register(client, email="wrong@example.com")
    response = client.post("/api/auth/login", json={"email": "wrong@example.com", "password": "Other#1234"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"

def test_login_nonexistent_user(client):
    response = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": PASSWORD})
    assert response.status_code == 401

def test_refresh_issues_new_pair(client, teacher):
    token = create_refresh_token(teacher.id, teacher.email, teacher.role)
    response = client.post("/api/auth/refresh", json={"refresh_token": token})
    assert response.status_code == 200
    assert response.json()["access_token"]

def test_refresh_rejects_access_token(client, teacher):
    """Access-токен нельзя использовать как refresh"""
    access = bearer(teacher)["Authorization"].split()[1]
    response = client.post("/api/auth/refresh", json={"refresh_token": access})
    assert response.status_code == 401

def test_refresh_for_missing_user(client):
    token = create_refresh_token(999, "gone@example.com", "teacher")
    assert client.post("/api/auth/refresh", json={"refresh_token": token}).status_code == 401

def test_me(client, teacher, teacher_headers):
    response = client.get("/api/auth/me", headers=teacher_headers)
    assert response.status_code == 200
    assert response.json()["email"] == teacher.email

def test_me_without_token(client):
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json()["detail"] == "Access token is required"

def test_me_invalid_token(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer invalid_token_here"})
    assert response.status_code == 401

def test_concurrent_duplicate_registration_is_conflict(db):
    """Вторая регистрация проскочила проверку email, но упёрлась в unique"""
    import pytest
    from school_records.application.dto import RegisterAccountInput
    from school_records.application.use_cases.register_account import RegisterAccount
    from school_records.domain.entities import Role
    from school_records.domain.errors import Conflict
    from school_records.infrastructure.repositories import AccountRepository

    class LateRepository(AccountRepository):
        # проверка выполнялась до того, как первая запись закоммичена
        def get_by_email(self, email):
            return None

    data = RegisterAccountInput(name="Twin", email="twin@example.com", password=PASSWORD, role=Role.STUDENT)
    repo = LateRepository(db)
    uc = RegisterAccount(repo=repo, hasher=PasswordHasher())
    assert uc.execute(data).email == "twin@example.com"
    with pytest.raises(Conflict, match="User with this email already exists"):
        uc.execute(data)
    assert db.query(Account).filter(Account.email == "twin@example.com").count() == 1
    assert db.query(Student).filter(Student.name == "Twin").count() == 1
