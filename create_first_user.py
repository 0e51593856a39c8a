import logging

from avaliacoes.config import settings
from avaliacoes.database import SessionLocal, init_db
from avaliacoes.models.pastoral import DEFAULT_SUBDOMAIN, Pastoral
from avaliacoes.models.usuario import ROLE_SUPER_ADMIN, User
from avaliacoes.security import get_password_hash

logger = logging.getLogger(__name__)


def create_default_pastoral(db) -> Pastoral:
    pastoral = db.query(Pastoral).filter(Pastoral.subdomain == DEFAULT_SUBDOMAIN).first()
    if pastoral:
        return pastoral

    pastoral = Pastoral(name="Pastoral Familiar", subdomain=DEFAULT_SUBDOMAIN, is_active=True)
    db.add(pastoral)
    db.commit()
    db.refresh(pastoral)
    logger.info("Pastoral padrão criada")
    return pastoral


def create_first_user():
    """Garante a pastoral padrão e o super admin configurado no ambiente."""
    db = SessionLocal()

    try:
        create_default_pastoral(db)

        email = settings.SUPER_ADMIN_EMAIL.lower()
        user = db.query(User).filter(User.email == email).first()

        if not user:
            logger.info("Criando super admin...")
            db_user = User(
                email=email,
                name=settings.SUPER_ADMIN_NAME,
                password_hash=get_password_hash(settings.SUPER_ADMIN_PASSWORD),
                role=ROLE_SUPER_ADMIN,
                pastoral_id=None,
            )
            db.add(db_user)
            db.commit()
            logger.info(f"Super admin criado: {email}")
            if not settings.is_production:
                logger.warning("Troque a senha do super admin após o primeiro login!")
        else:
            logger.info(f"Super admin {email} já existe.")

    except Exception:
        db.rollback()
        logger.exception("Erro ao criar super admin")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    init_db()
    create_first_user()
