# milkchain/auth.py

import streamlit as st
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, Tuple
import logging

from .config import config
from .directory.directory_service import normalize_phone
from .models import Supplier, DeliveryPartner, Farmer, Customer
from .store.repository import MirroredRepository

logger = logging.getLogger(__name__)

ROLES = ('admin', 'supplier', 'delivery_partner', 'farmer', 'customer')

AUTH_KEYS = [
    'authenticated', 'user_id', 'username', 'user_email', 'user_role',
    'user_fullname', 'supplier_id', 'login_time', 'user',
]


class AuthManager:
    """Role based login against the stored directory rows"""

    def __init__(self, repository: MirroredRepository,
                 clock: Optional[Callable[[], datetime]] = None):
        self.repository = repository
        self.clock = clock or datetime.now
        self.session_timeout = timedelta(hours=config.get_app_setting('SESSION_TIMEOUT_HOURS', 8))

    def _user_info(self, role: str, user_id: str, name: str, email: str = '',
                   supplier_id: Optional[str] = None) -> Dict:
        return {
            'id': user_id,
            'username': name,
            'email': email or '',
            'role': role,
            'full_name': name,
            'supplier_id': supplier_id,
            'login_time': self.clock(),
        }

    def authenticate(self, role: str, identifier: str, password: str = '') -> Tuple[bool, Dict]:
        """Authenticate a user of the given role and return user info"""
        if role not in ROLES:
            return False, {"error": f"Unknown role: {role}"}

        identifier = (identifier or '').strip()
        if not identifier:
            return False, {"error": "Please enter your login details"}

        if role == 'admin':
            if (identifier == config.get_app_setting('ADMIN_EMAIL')
                    and password == config.get_app_setting('ADMIN_PASSWORD')):
                return True, self._user_info('admin', 'admin', 'Administrator', identifier)
            return False, {"error": "Invalid email or password"}

        if role == 'supplier':
            for row in self.repository.read(Supplier.TABLE):
                if identifier not in (row.get('username'), row.get('email')):
                    continue
                if row.get('password') != password:
                    break
                if row.get('status') != 'approved':
                    return False, {"error": f"Supplier account is {row.get('status')}. Please wait for admin approval."}
                return True, self._user_info('supplier', row['id'], row['name'], row.get('email'), row['id'])
            return False, {"error": "Invalid username or password"}

        if role == 'delivery_partner':
            rows = self.repository.read(DeliveryPartner.TABLE, {'email': identifier})
            if rows and rows[0].get('password') == password:
                row = rows[0]
                if row.get('status') != 'active':
                    return False, {"error": "Your account is paused. Please contact your supplier."}
                return True, self._user_info('delivery_partner', row['id'], row['name'],
                                             row.get('email'), row.get('supplier_id'))
            return False, {"error": "Invalid email or password"}

        if role == 'farmer':
            phone = normalize_phone(identifier)
            for row in self.repository.read(Farmer.TABLE):
                if identifier != row.get('user_id') and (not phone or phone != normalize_phone(row.get('phone'))):
                    continue
                if row.get('password') != password:
                    break
                return True, self._user_info('farmer', row['id'], row['name'],
                                             row.get('email'), row.get('supplier_id'))
            return False, {"error": "Invalid phone number or password"}

        # Customers sign in with their phone number only
        phone = normalize_phone(identifier)
        for row in self.repository.read(Customer.TABLE):
            if phone and normalize_phone(row.get('phone')) == phone:
                return True, self._user_info('customer', row['id'], row['name'],
                                             row.get('email'), row.get('supplier_id'))
        return False, {"error": "No customer found with this phone number"}

    # ==================== SESSION ====================

    def check_session(self, role: Optional[str] = None) -> bool:
        """Check if user session is valid"""
        if not st.session_state.get('authenticated'):
            return False

        if not st.session_state.get('user_id'):
            logger.warning("No user_id in session state")
            return False

        if role and st.session_state.get('user_role') != role:
            return False

        login_time = st.session_state.get('login_time')
        if login_time and self.clock() - login_time > self.session_timeout:
            logger.info(f"Session timeout for user {st.session_state.get('username', 'unknown')}")
            self.logout()
            return False

        return True

    def login(self, user_info: Dict):
        """Set up user session"""
        st.session_state.authenticated = True
        st.session_state.login_time = user_info['login_time']

        st.session_state.user_id = user_info['id']
        st.session_state.username = user_info['username']
        st.session_state.user_email = user_info['email']
        st.session_state.user_role = user_info['role']
        st.session_state.user_fullname = user_info['full_name']
        st.session_state.supplier_id = user_info['supplier_id']

        st.session_state.user = {k: v for k, v in user_info.items() if k != 'login_time'}

        logger.info(f"{user_info['role']} {user_info['username']} (ID: {user_info['id']}) logged in")

    def logout(self):
        """Clear user session"""
        username = st.session_state.get('username', 'Unknown')
        user_id = st.session_state.get('user_id', 'Unknown')

        for key in AUTH_KEYS:
            if key in st.session_state:
                del st.session_state[key]

        st.cache_data.clear()

        logger.info(f"User {username} (ID: {user_id}) logged out")

    def require_auth(self, role: Optional[str] = None):
        """Stop the page unless a user with the role is logged in"""
        if not self.check_session(role):
            st.warning("⚠️ Please login from the home page to access this page")
            st.stop()
            return False
        return True

    def get_current_user_id(self) -> Optional[str]:
        return st.session_state.get('user_id')

    def get_user_display_name(self) -> str:
        if st.session_state.get('user_fullname'):
            return st.session_state.user_fullname
        return st.session_state.get('username', 'User')
