# Run from project root: streamlit run app/ui.py
# UI talks to backend API (POST /api/login, /api/register, /api/search, chat session endpoints).
# Conversation context is kept on the server per chat session.

import os

import requests
import streamlit as st

# Backend config
API_BASE = os.environ.get("API_BASE", "http://localhost:8000")

st.title("Premade Assistant")

if "user" not in st.session_state:
    st.session_state.user = None
if "messages" not in st.session_state:
    st.session_state.messages = []

# --- Account (sidebar) ---
with st.sidebar:
    if st.session_state.user is None:
        login_tab, register_tab = st.tabs(["Login", "Register"])
        with login_tab:
            username = st.text_input("Username", key="login_username")
            password = st.text_input("Password", type="password", key="login_password")
            if st.button("Login", key="login_btn"):
                try:
                    r = requests.post(
                        f"{API_BASE}/api/login",
                        json={"username": username, "password": password},
                        timeout=10,
                    )
                    if r.ok:
                        st.session_state.user = r.json().get("user")
                        st.session_state.messages = []
                        st.rerun()
                    else:
                        st.error(r.json().get("detail", f"Login failed: {r.status_code}"))
                except requests.RequestException as e:
                    st.error(f"Request failed: {e}")
        with register_tab:
            name = st.text_input("Name", key="reg_name")
            reg_username = st.text_input("Username", key="reg_username")
            email = st.text_input("Email", key="reg_email")
            reg_password = st.text_input("Password", type="password", key="reg_password")
            if st.button("Register", key="register_btn"):
                try:
                    r = requests.post(
                        f"{API_BASE}/api/register",
                        json={"name": name, "username": reg_username, "email": email, "password": reg_password},
                        timeout=10,
                    )
                    if r.ok:
                        st.success(r.json().get("message", "Registration successful! Please login."))
                    else:
                        st.error(r.json().get("detail", f"Registration failed: {r.status_code}"))
                except requests.RequestException as e:
                    st.error(f"Request failed: {e}")
    else:
        user = st.session_state.user
        st.caption(f"Logged in as **{user.get('username')}**")
        if st.button("Logout", key="logout_btn"):
            st.session_state.user = None
            st.session_state.messages = []
            st.rerun()

        st.subheader("Chats")
        if st.button("New chat", key="new_chat"):
            try:
                requests.post(
                    f"{API_BASE}/api/chat/new-session",
                    json={"user_id": user.get("username")},
                    timeout=10,
                )
            except requests.RequestException as e:
                st.error(f"Request failed: {e}")
            st.session_state.messages = []
            st.rerun()
        try:
            r = requests.get(f"{API_BASE}/api/chat/sessions/{user.get('username')}", timeout=10)
            sessions = r.json().get("sessions", []) if r.ok else []
        except requests.RequestException:
            sessions = []
        for s in sessions:
            if st.button(f"{s['title']} ({s['message_count']})", key=f"session_{s['id']}"):
                requests.post(
                    f"{API_BASE}/api/chat/switch-session",
                    json={"user_id": user.get("username"), "session_id": s["id"]},
                    timeout=10,
                )
                detail = requests.get(f"{API_BASE}/api/chat/session/{s['id']}", timeout=10)
                if detail.ok:
                    st.session_state.messages = [
                        {"role": "user" if m["sender"] == "user" else "assistant", "content": m["message"]}
                        for m in detail.json().get("messages", [])
                    ]
                st.rerun()

# --- Chat ---
try:
    status = requests.get(f"{API_BASE}/api/test", timeout=5)
    if status.ok:
        data = status.json()
        st.caption(f"Model: {data.get('model')} · Web search: {data.get('web_search')}")
except requests.RequestException:
    st.caption("Backend not reachable. Start the API first.")

for msg in st.session_state.messages:
    with st.chat_message(msg["role"]):
        st.markdown(msg["content"])
        if msg.get("meta"):
            st.caption(msg["meta"])

if prompt := st.chat_input("Ask about our company, services, careers, or anything else"):
    st.session_state.messages.append({"role": "user", "content": prompt})
    with st.chat_message("user"):
        st.markdown(prompt)
    user = st.session_state.user or {}
    with st.chat_message("assistant"):
        placeholder = st.empty()
        placeholder.caption("Thinking...")
        try:
            r = requests.post(
                f"{API_BASE}/api/search",
                json={"query": prompt, "user_id": user.get("username")},
                timeout=30,
            )
            if r.ok:
                data = r.json()
                answer = data.get("answer", "")
                meta = f"Source: {data.get('source')} · Confidence: {data.get('confidence')}%"
            else:
                answer = f"Error: {r.status_code}: {r.text[:200]}"
                meta = ""
        except requests.RequestException as e:
            answer = f"Connection failed: {e}"
            meta = ""
        placeholder.markdown(answer)
        if meta:
            st.caption(meta)
    st.session_state.messages.append({"role": "assistant", "content": answer, "meta": meta})
