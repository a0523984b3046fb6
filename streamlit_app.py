#!/usr/bin/env python3
"""
Streamlit application for Perplexity Chat.

Features:
- Chat with the Perplexity API using structured (JSON schema) article replies.
- Article and research replies rendered with clickable citation markers.
- API settings panel: model, sampling, search filters and structured output.
- API key stored locally and reloaded on startup.
"""

import logging

import streamlit as st

from perplexity_chat.clients.perplexity_client import PerplexityClient
from perplexity_chat.config import load_config, setup_logging
from perplexity_chat.models.api_models import RECENCY_FILTERS, SUPPORTED_MODELS, ApiSettings
from perplexity_chat.services.chat_session import ChatSession
from perplexity_chat.services.key_store import FileKeyStore
from perplexity_chat.services.query_builder import StructuredQueryBuilder
from perplexity_chat.services.response_renderer import render_message
from perplexity_chat.services.settings_editor import OUTPUT_TYPES, SettingsEditor, parse_domain_filter

# --- Configuration & Initialization ---

config = load_config()
setup_logging(config.log_level)
logger = logging.getLogger(__name__)

st.set_page_config(layout="wide", page_title="Perplexity Chat")
st.title("Perplexity Chat")

# Use st.secrets with fallback to environment variables for local development
try:
    BASE_URL = st.secrets.get("api", {}).get("PERPLEXITY_BASE_URL") or config.base_url
except FileNotFoundError:
    BASE_URL = config.base_url


def _client_for(api_key: str) -> PerplexityClient:
    return PerplexityClient(api_key, base_url=BASE_URL, timeout=config.timeout)


def get_session() -> ChatSession:
    """Return the chat session for this browser tab, creating it on first use"""
    if "chat_session" not in st.session_state:
        key_store = FileKeyStore(config.key_store_path)
        editor = SettingsEditor(ApiSettings(model=config.model, temperature=config.temperature))
        api_key = key_store.load() or config.api_key or ""
        session = ChatSession(StructuredQueryBuilder(_client_for(api_key)), key_store, editor.settings)
        session.api_key = api_key
        st.session_state.chat_session = session
        st.session_state.settings_editor = editor
        st.session_state.prompt_input = ""
        logger.info("Chat session initialized.")
    return st.session_state.chat_session


session = get_session()
editor: SettingsEditor = st.session_state.settings_editor


# --- Callbacks ---

def on_api_key_change():
    api_key = st.session_state.api_key_input
    session.set_api_key(api_key)
    session.use_client(_client_for(api_key))


def on_structured_output_change():
    editor.edit_structured_output(
        st.session_state.output_type,
        st.session_state.get("structured_output_value", ""),
    )


def on_related_question(question: str):
    st.session_state.prompt_input = session.use_related_question(question)


def on_submit():
    text = st.session_state.prompt_input
    if not session.can_submit(text):
        return
    session.update_settings(editor.settings)
    st.session_state.prompt_input = ""
    with st.spinner("Waiting for answer..."):
        session.submit(text)


# --- Settings Sidebar ---

with st.sidebar:
    st.header("API Settings")
    st.text_input(
        "Perplexity API key",
        value=session.api_key,
        type="password",
        key="api_key_input",
        on_change=on_api_key_change,
    )
    model = st.selectbox("Model", SUPPORTED_MODELS, index=SUPPORTED_MODELS.index(editor.settings.model))
    temperature = st.slider("Temperature", 0.0, 2.0, float(editor.settings.temperature), 0.1)
    top_p = st.slider("Top P", 0.0, 1.0, float(editor.settings.top_p), 0.1)
    top_k = st.number_input("Top K", min_value=0, value=int(editor.settings.top_k), step=1)
    presence_penalty = st.slider("Presence penalty", -2.0, 2.0, float(editor.settings.presence_penalty), 0.1)
    frequency_penalty = st.slider("Frequency penalty", 0.0, 2.0, float(editor.settings.frequency_penalty), 0.1)
    max_tokens = st.number_input("Max tokens (0 = API default)", min_value=0, value=editor.settings.max_tokens or 0, step=64)

    st.subheader("Search")
    return_images = st.checkbox("Return images", value=editor.settings.return_images)
    return_related = st.checkbox("Return related questions", value=editor.settings.return_related_questions)
    recency_options = ("",) + RECENCY_FILTERS
    recency = st.selectbox(
        "Recency filter",
        recency_options,
        index=recency_options.index(editor.settings.search_recency_filter or ""),
        format_func=lambda value: value or "none",
    )
    domains = st.text_input(
        "Domain filter",
        value=",".join(editor.settings.search_domain_filter or []),
        placeholder="e.g. example.com,-excludedomain.com",
        help="Add - prefix to exclude domains. Max 3 domains.",
    )

    editor.update(
        model=model,
        temperature=temperature,
        top_p=top_p,
        top_k=int(top_k),
        presence_penalty=presence_penalty,
        frequency_penalty=frequency_penalty,
        max_tokens=int(max_tokens) or None,
        return_images=return_images,
        return_related_questions=return_related,
        search_recency_filter=recency or None,
        search_domain_filter=parse_domain_filter(domains),
    )

    st.subheader("Structured Output")
    output_type = st.selectbox(
        "Output type",
        OUTPUT_TYPES,
        key="output_type",
        on_change=on_structured_output_change,
        help="Regex output is supported by sonar only. Chat replies always use the article schema.",
    )
    if output_type != "none":
        st.text_area(
            "JSON schema" if output_type == "json" else "Regex",
            key="structured_output_value",
            height=150,
            on_change=on_structured_output_change,
        )

    st.divider()
    st.button("Clear chat", on_click=session.clear, use_container_width=True)


# --- Chat History ---

for message in session.messages:
    with st.chat_message(message.role):
        st.markdown(render_message(message).to_html(), unsafe_allow_html=True)

if session.related_questions:
    st.markdown("**Related Questions:**")
    for index, question in enumerate(session.related_questions):
        st.button(question, key=f"related_{index}", on_click=on_related_question, args=(question,))

# --- Input ---

with st.form("prompt_form", clear_on_submit=False):
    columns = st.columns([8, 1])
    columns[0].text_input(
        "Ask me anything...",
        key="prompt_input",
        label_visibility="collapsed",
        placeholder="Ask me anything..." if session.api_key else "Enter your Perplexity API key first",
        disabled=session.is_loading or not session.api_key,
    )
    columns[1].form_submit_button(
        "Send",
        on_click=on_submit,
        disabled=session.is_loading or not session.api_key,
        use_container_width=True,
    )
