"""
MilkChain - Main Entry Point
Role login and navigation hub
"""
import streamlit as st
import logging

from milkchain.config import config
from milkchain.services import get_auth, get_repository, get_directory_service

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Page config
st.set_page_config(
    page_title="MilkChain",
    page_icon="🥛",
    layout="wide",
    initial_sidebar_state="expanded"
)

auth = get_auth()

ROLE_LABELS = {
    'delivery_partner': '🚚 Delivery Partner',
    'supplier': '🏭 Supplier',
    'admin': '🛠️ Admin',
    'farmer': '🧑‍🌾 Farmer',
    'customer': '🏠 Customer',
}

IDENTIFIER_LABELS = {
    'delivery_partner': 'Email',
    'supplier': 'Username or email',
    'admin': 'Email',
    'farmer': 'Phone number or user ID',
    'customer': 'Phone number',
}

ROLE_PAGES = {
    'delivery_partner': ("pages/1_🚚_Delivery_Partner.py", "Open Delivery Dashboard"),
    'supplier': ("pages/2_🏭_Supplier_Dashboard.py", "Open Supplier Dashboard"),
    'admin': ("pages/3_🛠️_Admin.py", "Open Admin Dashboard"),
}

# ==================== CUSTOM STYLES ====================

st.markdown("""
<style>
    .welcome-header {
        text-align: center;
        padding: 20px 0;
    }
    .welcome-header h1 {
        color: #1f2937;
        margin-bottom: 5px;
    }
    .welcome-header p {
        color: #6b7280;
        font-size: 1.1rem;
    }
</style>
""", unsafe_allow_html=True)


# ==================== LOGIN PAGE ====================

def show_login_page():
    """Display role login form"""

    col1, col2, col3 = st.columns([1, 1.5, 1])

    with col2:
        st.markdown("""
        <div style="text-align: center; margin-bottom: 30px;">
            <div style="font-size: 4rem;">🥛</div>
            <h1 style="margin: 10px 0 5px 0; color: #1f2937;">MilkChain</h1>
            <p style="color: #6b7280; margin: 0;">Dairy Supply Chain Management</p>
        </div>
        """, unsafe_allow_html=True)

        role = st.selectbox(
            "I am a",
            options=list(ROLE_LABELS.keys()),
            format_func=lambda r: ROLE_LABELS[r],
            key="login_role"
        )

        with st.form("login_form", clear_on_submit=False):
            identifier = st.text_input(IDENTIFIER_LABELS[role], key="login_identifier")

            password = ''
            if role != 'customer':
                password = st.text_input("Password", type="password", key="login_password")

            submit = st.form_submit_button("Login", type="primary", use_container_width=True)

            if submit:
                if identifier and (password or role == 'customer'):
                    success, result = auth.authenticate(role, identifier, password)

                    if success:
                        auth.login(result)
                        st.success("✅ Login successful!")
                        st.rerun()
                    else:
                        st.error(f"❌ {result.get('error', 'Login failed')}")
                else:
                    st.warning("⚠️ Please fill in your login details")

        with st.expander("🏭 New supplier? Register here"):
            show_supplier_registration()

        st.markdown("---")
        repository = get_repository()
        st.caption(
            f"v1.0.0 | "
            f"{'☁️ Cloud' if config.is_cloud else '💻 Local'} | "
            f"Store: {repository.mode}"
        )


def show_supplier_registration():
    """Suppliers register themselves and wait for admin approval"""
    with st.form("supplier_registration", clear_on_submit=True):
        name = st.text_input("Business name *")
        email = st.text_input("Email *")
        username = st.text_input("Username *")
        password = st.text_input("Password *", type="password")
        phone = st.text_input("Phone")
        address = st.text_area("Address")
        license_number = st.text_input("License number")
        total_capacity = st.number_input("Daily capacity (L)", min_value=0.0, step=10.0)

        if st.form_submit_button("Register", use_container_width=True):
            result = get_directory_service().add_supplier(
                name=name, email=email, username=username, password=password,
                phone=phone, address=address, license_number=license_number,
                total_capacity=total_capacity,
            )
            if result.success:
                st.success("✅ Registration submitted. An admin will review it shortly.")
            else:
                for error in result.errors:
                    st.error(f"❌ {error}")


# ==================== GREETING PAGE ====================

def show_greeting_page():
    """Display welcome page with the dashboard for the user's role"""

    user = st.session_state.get('user', {})
    name = user.get('full_name', 'User')
    role = user.get('role', '')

    with st.sidebar:
        st.markdown(f"### 👤 {name}")
        st.caption(f"Role: {ROLE_LABELS.get(role, role)}")
        st.markdown("---")

        if st.button("🚪 Logout", use_container_width=True):
            auth.logout()
            st.rerun()

    st.markdown(f"""
    <div class="welcome-header">
        <h1>👋 Welcome, {name}!</h1>
        <p>{ROLE_LABELS.get(role, role)}</p>
    </div>
    """, unsafe_allow_html=True)

    col1, col2, col3 = st.columns([1, 2, 1])
    with col2:
        if role in ROLE_PAGES:
            page, label = ROLE_PAGES[role]
            if st.button(label, type="primary", use_container_width=True):
                st.switch_page(page)
        else:
            st.info("Your portal is coming soon. Contact your supplier for delivery details.")


# ==================== MAIN ====================

def main():
    """Main entry point"""
    if auth.check_session():
        show_greeting_page()
    else:
        show_login_page()


if __name__ == "__main__":
    main()
