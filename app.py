import streamlit as st
import logging  # For detailed logging from our helper functions
import pandas as pd  # To display results nicely in a table
from pathlib import Path
from barber_finder.config import load_settings
from barber_finder.csv_utils import csv_filename, places_to_csv
from barber_finder.models import PlaceRecord
from barber_finder.search import handle_search_request, QUOTA_WARNING

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# --- .env loading ---
env_path = Path(__file__).resolve().parent / ".env"
settings = load_settings(env_path if env_path.exists() else None)
logging.getLogger().setLevel(settings.log_level)

GOOGLE_MAPS_API_KEY = settings.api_key
if not GOOGLE_MAPS_API_KEY:
    # Streamlit Cloud deployments keep the key in secrets instead of .env
    try:
        GOOGLE_MAPS_API_KEY = st.secrets["google_api_key"]["key"]
    except (KeyError, FileNotFoundError):
        GOOGLE_MAPS_API_KEY = None
    except Exception as e:
        logger.error(f"Error loading Google API Key from secrets: {e}")
        GOOGLE_MAPS_API_KEY = None

logger.info(f"GOOGLE_MAPS_API_KEY available: {'Yes' if GOOGLE_MAPS_API_KEY else 'No'}")

# Ensure session state variables are initialized
if 'search_results' not in st.session_state:
    st.session_state.search_results = []
if 'search_meta' not in st.session_state:
    st.session_state.search_meta = {"total": 0, "pages": 0}
if 'search_city' not in st.session_state:
    st.session_state.search_city = ""


def results_to_dataframe(results):
    """Table view of result dicts, with list columns flattened for display."""
    df = pd.DataFrame(results)
    if "types" in df.columns:
        df["types"] = df["types"].apply(lambda t: ", ".join(x.replace("_", " ") for x in t[:3]) if t else "")
    columns = ["name", "formatted_address", "rating", "user_ratings_total",
               "formatted_phone_number", "website", "types", "google_maps_url"]
    return df[[c for c in columns if c in df.columns]]


def results_to_records(results):
    """Rebuild PlaceRecords from response dicts for CSV export."""
    fields = set(PlaceRecord.__dataclass_fields__)
    return [PlaceRecord(**{k: v for k, v in row.items() if k in fields}) for row in results]


st.set_page_config(page_title="Barber Shop Finder", page_icon="💈")
st.title("Barber Shop Finder")
st.caption("Type a city, search Google Maps barber shops, and download everything to CSV.")

tab1, tab2 = st.tabs(["Search", "Settings"])

with tab1:
    city_input = st.text_input("City", placeholder='Ex: "Ribeirão Preto, SP"', key="city_input")
    include_details = st.checkbox("Include phone/website", value=False, key="include_details")

    if st.button("Search"):
        city = (city_input or "").strip()
        if not city:
            st.error("Please type a city name first.")
            st.stop()

        logger.info(f"Starting search for '{city}' (details: {include_details})")
        with st.spinner("Searching Google Maps…"):
            status_code, payload = handle_search_request(
                {"city": city, "includeDetails": include_details},
                api_key=GOOGLE_MAPS_API_KEY,
                settings=settings,
            )

        st.session_state.search_city = city
        st.session_state.search_results = payload.get("results", [])
        st.session_state.search_meta = payload.get("meta", {"total": 0, "pages": 0})

        if status_code != 200:
            st.error(payload.get("error") or "Search failed. Please try again.")
            if status_code == 429 and QUOTA_WARNING not in st.session_state.search_meta.get("warnings", []):
                st.warning(QUOTA_WARNING)
            logger.error(f"Search failed with {status_code}: {payload.get('error')} (status: {payload.get('status')})")

    # ===============================
    # Show Results + Download Button
    # ===============================
    meta = st.session_state.search_meta
    results = st.session_state.search_results

    for message in meta.get("warnings", []):
        st.warning(message)

    col1, col2, col3 = st.columns(3)
    col1.metric("Total", meta.get("total", 0))
    col2.metric("Pages", meta.get("pages", 0))
    col3.metric("Grid points", meta.get("gridPoints", 0))

    if results:
        st.success(f"{len(results)} barber shops found")
        st.dataframe(results_to_dataframe(results), use_container_width=True)
        st.download_button(
            "Download CSV",
            data=places_to_csv(results_to_records(results)),
            file_name=csv_filename(st.session_state.search_city),
            mime="text/csv",
        )
    else:
        st.info("No results yet. Search a city to begin.")

with tab2:
    st.subheader("App Settings")

    st.write("Current Settings:")
    st.write(f"- Google API Key: {'Configured' if GOOGLE_MAPS_API_KEY else 'Not Configured'}")
    st.write(f"- Page token delay: {settings.page_token_delay_seconds}s")
    st.write(f"- Empty page retries: {settings.max_empty_page_attempts} x {settings.empty_page_retry_delay_seconds}s")
    st.write(f"- Request timeout: {settings.request_timeout_seconds}s")

    st.subheader("Setup Instructions")
    st.write("""
    1. Create a .env file in the same directory as this app with the following:
       ```
       GOOGLE_MAPS_API_KEY=your_google_maps_api_key
       ```
    2. Enable the Geocoding API and Places API (New) for that key.
    3. Install the app: `pip install -e .` and run `streamlit run app.py`
    """)

    if st.button("Clear Results"):
        for key in ("search_results", "search_meta", "search_city"):
            st.session_state.pop(key, None)
        st.success("Results cleared! Refreshing...")
        st.rerun()
