# services/player_service.py
"""
Player directory: registration, lookup and profile updates.
"""

import logging

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import FlushError

from badminton_club.extensions import db
from badminton_club.models import Player
from badminton_club.services.errors import ClubError, failure
from badminton_club.utils.data_processing import (
    clean_email, clean_phone_number, clean_player_id, normalize_name
)

logger = logging.getLogger('player_service')

REGISTRATION_ATTEMPTS = 3

PROFILE_FIELDS = (
    'first_name',
    'last_name',
    'email',
    'phone',
    'emergency_contact_name',
    'emergency_contact_phone',
)


def _validate_profile(data, partial=False):
    """
    Clean and validate player fields.

    Returns:
        tuple: (cleaned dict, list of error strings)
    """
    cleaned = {}
    errors = []

    def wanted(field):
        return not partial or field in data

    for field, label in (('first_name', 'First name'), ('last_name', 'Last name')):
        if wanted(field):
            value = normalize_name(data.get(field))
            if len(value) < 2:
                errors.append(f"{label} must be at least 2 characters")
            cleaned[field] = value

    if wanted('email'):
        email = clean_email(data.get('email'))
        try:
            validate_email(email, check_deliverability=False)
        except EmailNotValidError:
            errors.append('A valid email address is required')
        cleaned['email'] = email

    if wanted('phone'):
        phone = clean_phone_number(data.get('phone'))
        if len(phone) < 8:
            errors.append('Phone number must be at least 8 digits')
        cleaned['phone'] = phone

    if 'emergency_contact_name' in data:
        cleaned['emergency_contact_name'] = normalize_name(data.get('emergency_contact_name')) or None
    if 'emergency_contact_phone' in data:
        cleaned['emergency_contact_phone'] = clean_phone_number(data.get('emergency_contact_phone')) or None

    return cleaned, errors


def _is_email_conflict(error):
    """True when a write failed on the unique email index rather than the player ID."""
    detail = str(getattr(error, 'orig', error)).lower()
    return 'uq_player_email' in detail or 'player.email' in detail


class PlayerService:
    """Service class for player registration and profile operations."""

    @staticmethod
    def register_player(data):
        """
        Register a new player.

        Args:
            data: dict with first_name, last_name, email, phone and optional
                  emergency contact fields

        Returns:
            dict: Result with the new player (including the generated ID)
        """
        cleaned, errors = _validate_profile(data or {})
        if errors:
            return failure(ClubError.INVALID_REQUEST, '; '.join(errors), errors=errors)

        for attempt in range(1, REGISTRATION_ATTEMPTS + 1):
            try:
                if PlayerService.email_taken(cleaned['email']):
                    return failure(ClubError.EMAIL_ALREADY_REGISTERED)

                player = Player(id=Player.generate_player_id(), **cleaned)
                db.session.add(player)
                db.session.commit()

                logger.info(f"Registered player {player.id} ({player.email})")

                return {
                    'success': True,
                    'message': f'Welcome! Your player ID is {player.id}. Keep it handy for booking.',
                    'player': player.to_dict()
                }

            except (IntegrityError, FlushError) as e:
                db.session.rollback()
                if _is_email_conflict(e):
                    logger.info(f"Registration race on email {cleaned['email']}")
                    return failure(ClubError.EMAIL_ALREADY_REGISTERED)

                logger.warning(f"Player ID collision on registration attempt {attempt}, retrying")

            except SQLAlchemyError as e:
                db.session.rollback()
                logger.error(f"Database error registering player: {str(e)}", exc_info=True)
                return failure(ClubError.STORE_UNAVAILABLE)

        logger.error(f"Could not allocate a player ID for {cleaned['email']} "
                     f"after {REGISTRATION_ATTEMPTS} attempts")
        return failure(ClubError.STORE_UNAVAILABLE)

    @staticmethod
    def lookup_player(player_id):
        """Find a player by ID, ignoring case and surrounding whitespace."""
        player_id = clean_player_id(player_id)
        if not player_id:
            return None
        return db.session.get(Player, player_id)

    @staticmethod
    def get_player_profile(player_id):
        """Result dict wrapping lookup_player()."""
        try:
            player = PlayerService.lookup_player(player_id)

        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Database error looking up player {player_id}: {str(e)}", exc_info=True)
            return failure(ClubError.STORE_UNAVAILABLE)

        if not player:
            return failure(ClubError.PLAYER_NOT_FOUND)

        return {'success': True, 'player': player.to_dict()}
    @staticmethod
    def player_exists(player_id):
        return PlayerService.lookup_player(player_id) is not None

    @staticmethod
    def email_taken(email, exclude_player_id=None):
        query = db.session.query(Player).filter(func.lower(Player.email) == clean_email(email))
        if exclude_player_id:
            query = query.filter(Player.id != exclude_player_id)
        return db.session.query(query.exists()).scalar()

    @staticmethod
    def update_player(player_id, data):
        """
        Update a player's profile. Only the supplied fields are changed.

        Returns:
            dict: Result with the updated player
        """
        data = {k: v for k, v in (data or {}).items() if k in PROFILE_FIELDS}
        if not data:
            return failure(ClubError.INVALID_REQUEST, 'No profile fields to update')

        cleaned, errors = _validate_profile(data, partial=True)
        if errors:
            return failure(ClubError.INVALID_REQUEST, '; '.join(errors), errors=errors)

        try:
            player = PlayerService.lookup_player(player_id)
            if not player:
                return failure(ClubError.PLAYER_NOT_FOUND)

            if 'email' in cleaned and PlayerService.email_taken(cleaned['email'], exclude_player_id=player.id):
                return failure(ClubError.EMAIL_ALREADY_REGISTERED)

            player.from_dict(cleaned)
            db.session.commit()

            logger.info(f"Player {player.id} updated: {sorted(cleaned)}")

            return {
                'success': True,
                'message': 'Profile updated',
                'player': player.to_dict()
            }

        except IntegrityError:
            db.session.rollback()
            return failure(ClubError.EMAIL_ALREADY_REGISTERED)

        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Database error updating player {player_id}: {str(e)}", exc_info=True)
            return failure(ClubError.STORE_UNAVAILABLE)

    @staticmethod
    def find_player_ids(email):
        """Players registered under an email, for members who lost their ID."""
        email = clean_email(email)
        if not email:
            return failure(ClubError.INVALID_REQUEST, 'Email is required')

        try:
            players = (
                db.session.query(Player)
                .filter(func.lower(Player.email) == email)
                .order_by(Player.registered_at)
                .all()
            )

        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Database error finding player IDs: {str(e)}", exc_info=True)
            return failure(ClubError.STORE_UNAVAILABLE)

        if not players:
            return failure(ClubError.PLAYER_NOT_FOUND, 'No player is registered with that email.')

        return {
            'success': True,
            'players': [{'id': p.id, 'name': p.full_name} for p in players]
        }
