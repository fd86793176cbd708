from sqlalchemy.orm import Session

from realty.models.user import User, UserType


def serialize_user(u: User) -> dict:
    return {
        "id":       str(u.id),
        "name":     u.name,
        "email":    u.email,
        "phone":    u.phone or "",
        "userType": u.userType or UserType.SELLER.value,
    }


class UserService:

    def get_by_email(self, db: Session, email: str) -> User | None:
        return db.query(User).filter(User.email == email.strip().lower()).first()

    def find_or_create_by_email(self, db: Session, email: str) -> User:
        """
        Look up a user by email, creating a minimal seller profile on first sign-in.
        The name defaults to the local part of the address.
        """
        email = email.strip().lower()
        user = self.get_by_email(db, email)
        if user:
            return user

        user = User(
            name=email.split("@")[0],
            email=email,
            phone="",
            userType=UserType.SELLER.value,
            isActive=True,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user


user_service = UserService()
