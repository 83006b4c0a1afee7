"""Streamlit dashboard for stored Stockify recommendations."""
