"""
OpenData Canvas - Streamlit Application
Main entry point for the open-data dashboard
"""
import logging

import streamlit as st
import pandas as pd

# Page config must be first Streamlit command
st.set_page_config(
    page_title="OpenData Canvas",
    page_icon="🌍",
    layout="wide",
    initial_sidebar_state="expanded"
)

from config import (
    LOGS_DIR, LOG_LEVEL, REGIONS, NEWS_COUNTRIES, CRYPTO_LIMITS, SPORTS_RESULT_KINDS, FAVORITE_TYPES,
)
from models import Favorite
from opendata import CACHE_NAMESPACES, DataService, build_default_service
from persistence import (
    add_favorite, remove_favorite, is_favorite, load_favorites,
    get_last_country, save_last_country,
)

# Setup logging
LOGS_DIR.mkdir(parents=True, exist_ok=True)
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(LOGS_DIR / 'opendata_canvas.log'),
        logging.StreamHandler()
    ]
)
logger = logging.getLogger(__name__)

PAGES = ["🏠 Home", "🌍 Countries", "⛅ Weather", "📰 News", "💰 Crypto",
         "🖼️ Images", "😂 Fun", "⚽ Sports", "⭐ Favorites", "🗄️ Cache"]


@st.cache_resource
def get_service() -> DataService:
    """One DataService (and so one cache engine) per server process"""
    return build_default_service()


def format_number(value) -> str:
    if value is None or pd.isna(value):
        return "—"
    return f"{value:,.0f}"


def format_price(value) -> str:
    if value is None or pd.isna(value):
        return "—"
    return f"${value:,.2f}" if value >= 1 else f"${value:.6f}"


def favorite_button(service: DataService, favorite: Favorite, key: str) -> None:
    """Toggle button that pins/unpins an item"""
    storage = service.cache.storage
    if is_favorite(storage, favorite.id):
        if st.button("★ Remove favorite", key=key):
            remove_favorite(storage, favorite.id)
            st.rerun()
    elif st.button("☆ Add to favorites", key=key):
        ok, message = add_favorite(storage, favorite)
        if ok:
            st.rerun()
        else:
            st.warning(message)


# ============================================================
# PAGES
# ============================================================

def render_home(service: DataService):
    st.title("🌍 OpenData Canvas")
    st.caption("Countries, weather, news, crypto markets, photos, jokes and sports in one place.")

    joke = service.get_random_joke()
    if joke:
        with st.container(border=True):
            st.markdown(f"**Joke of the hour** · _{joke.category}_")
            st.write(joke.text)
            st.caption(f"Source: {joke.source}")

    c1, c2, c3 = st.columns(3)
    c1.metric("Weather", "Ready" if service.weather_available else "No API key")
    c2.metric("News", "Ready" if service.news_available else "No API key")
    c3.metric("Images", "Ready" if service.images_available else "No API key")


def render_countries(service: DataService):
    st.header("🌍 Country Explorer")
    col1, col2 = st.columns([3, 1])
    with col1:
        query = st.text_input("Search countries", placeholder="e.g. Japan, Brazil", key="country_query")
    with col2:
        region = st.selectbox("Region", REGIONS, key="country_region")

    try:
        if query.strip():
            countries = service.search_countries(query)
        else:
            countries = service.get_countries_by_region(region)
    except Exception as e:
        st.error(f"Could not load countries: {e}")
        return

    if not countries:
        st.info("No countries match your search.")
        return

    rows = [{
        "Flag": c.flag_png,
        "Country": c.name,
        "Capital": ", ".join(c.capitals) or "—",
        "Region": c.region,
        "Population": c.population,
        "Code": c.cca3,
    } for c in sorted(countries, key=lambda c: c.name)]
    st.dataframe(
        pd.DataFrame(rows),
        use_container_width=True,
        hide_index=True,
        column_config={"Flag": st.column_config.ImageColumn("Flag")},
    )

    codes = [r["Code"] for r in rows]
    last = get_last_country(service.cache.storage)
    selected = st.selectbox(
        "Country details",
        codes,
        index=codes.index(last) if last in codes else 0,
        format_func=lambda code: next(r["Country"] for r in rows if r["Code"] == code),
        key="country_detail",
    )
    if selected:
        save_last_country(service.cache.storage, selected)
        render_country_detail(service, selected)


def render_country_detail(service: DataService, code: str):
    try:
        country = service.get_country(code)
    except Exception as e:
        st.error(f"Could not load country {code}: {e}")
        return

    with st.container(border=True):
        c1, c2 = st.columns([1, 3])
        with c1:
            if country.flag_png:
                st.image(country.flag_png, caption=country.flag_alt or country.name)
        with c2:
            st.subheader(country.official_name)
            m1, m2, m3 = st.columns(3)
            m1.metric("Population", format_number(country.population))
            m2.metric("Area (km²)", format_number(country.area))
            m3.metric("Region", country.subregion or country.region)
            if country.languages:
                st.caption("Languages: " + ", ".join(country.languages.values()))
            if country.currencies:
                st.caption("Currencies: " + ", ".join(country.currencies.values()))

        if country.capitals and service.weather_available:
            weather = service.get_weather(country.capitals[0], country.cca2)
            if weather:
                st.markdown(
                    f"**{weather.city}** now: {weather.temperature:.1f}°C, {weather.description}"
                )

        favorite_button(
            service,
            Favorite.create(id=f"country-{country.cca3}", type="country", title=country.name,
                            data={"cca3": country.cca3, "flag": country.flag_png}),
            key=f"fav_country_{country.cca3}",
        )


def render_weather(service: DataService):
    st.header("⛅ Weather")
    if not service.weather_available:
        st.info("Add WEATHER_API_KEY to .env to enable weather lookups.")
        return

    col1, col2 = st.columns([3, 1])
    with col1:
        city = st.text_input("City", placeholder="e.g. London", key="weather_city").strip()
    with col2:
        country_code = st.text_input("Country code (optional)", max_chars=2, key="weather_cc").strip().upper()

    if st.button("Get Weather", key="weather_btn") and city:
        with st.spinner(f"Fetching weather for {city}..."):
            weather = service.get_weather(city, country_code or None)
        if weather is None:
            st.warning(f"Weather not found for {city}.")
            return
        st.subheader(f"{weather.city}{', ' + weather.country if weather.country else ''}")
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("Temperature", f"{weather.temperature:.1f}°C")
        c2.metric("Feels like", f"{weather.feels_like:.1f}°C")
        c3.metric("Humidity", f"{weather.humidity}%")
        c4.metric("Wind", f"{weather.wind_speed:.1f} m/s")
        st.caption(f"{weather.condition}: {weather.description}")


def render_news(service: DataService):
    st.header("📰 News")
    if not service.news_available:
        st.info("Add NEWS_API_KEY to .env to enable news.")
        return

    tab_headlines, tab_search = st.tabs(["Top Headlines", "Search"])

    with tab_headlines:
        country = st.selectbox("Country", list(NEWS_COUNTRIES), key="news_country")
        page = st.number_input("Page", min_value=1, value=1, step=1, key="news_page")
        try:
            result = service.get_headlines(NEWS_COUNTRIES[country], int(page))
        except Exception as e:
            st.error(str(e))
        else:
            render_articles(service, result.articles, "headlines")

    with tab_search:
        query = st.text_input("Search news", key="news_query")
        if st.button("Search", key="news_search_btn") and query.strip():
            try:
                result = service.search_news(query)
            except Exception as e:
                st.error(str(e))
            else:
                st.caption(f"{result.total_results:,} results")
                render_articles(service, result.articles, "search")


def render_articles(service: DataService, articles, key_prefix: str):
    if not articles:
        st.info("No articles found.")
        return
    for i, article in enumerate(articles):
        with st.container(border=True):
            c1, c2 = st.columns([1, 3])
            with c1:
                if article.image_url:
                    st.image(article.image_url)
            with c2:
                st.markdown(f"**[{article.title}]({article.url})**")
                st.caption(f"{article.source} · {article.published_at[:10]}")
                if article.description:
                    st.write(article.description)
                favorite_button(
                    service,
                    Favorite.create(id=f"news-{article.url}", type="news", title=article.title,
                                    data={"url": article.url, "source": article.source}),
                    key=f"fav_{key_prefix}_{i}",
                )


def render_crypto(service: DataService):
    st.header("💰 Crypto Markets")
    col1, col2 = st.columns([3, 1])
    with col1:
        query = st.text_input("Search coins", placeholder="e.g. bitcoin", key="crypto_query").strip()
    with col2:
        limit = st.selectbox("Top", CRYPTO_LIMITS, index=2, key="crypto_limit")

    try:
        coins = service.search_crypto(query) if query else service.get_top_crypto(limit)
    except Exception as e:
        st.error(f"Could not load crypto markets: {e}")
        return

    if not coins:
        st.info("No coins found.")
        return

    rows = [{
        "#": c.market_cap_rank,
        "Logo": c.image,
        "Coin": c.name,
        "Symbol": c.symbol.upper(),
        "Price": format_price(c.current_price),
        "24h": f"{c.price_change_percentage_24h:+.2f}%" if c.price_change_percentage_24h is not None else "—",
        "Market Cap": format_number(c.market_cap),
    } for c in coins]
    st.dataframe(
        pd.DataFrame(rows),
        use_container_width=True,
        hide_index=True,
        column_config={"Logo": st.column_config.ImageColumn("Logo")},
    )

    coin_id = st.selectbox("Pin a coin", [c.id for c in coins], key="crypto_pin")
    coin = next(c for c in coins if c.id == coin_id)
    favorite_button(
        service,
        Favorite.create(id=f"crypto-{coin.id}", type="crypto", title=coin.name,
                        data={"symbol": coin.symbol, "image": coin.image}),
        key=f"fav_crypto_{coin.id}",
    )


def render_images(service: DataService):
    st.header("🖼️ Images")
    if not service.images_available:
        st.info("Add UNSPLASH_API_KEY to .env to enable image search.")
        return

    query = st.text_input("Search photos", placeholder="e.g. mountains", key="image_query").strip()
    if not query:
        return
    images = service.search_images(query)
    if not images:
        st.info(f"No images found for '{query}'.")
        return

    cols = st.columns(3)
    for i, image in enumerate(images):
        with cols[i % 3]:
            st.image(image.url, caption=image.description)
            st.caption(f"📷 [{image.author}]({image.author_url})")


def render_fun(service: DataService):
    st.header("😂 Fun")
    joke = service.get_random_joke()
    if st.button("Another one", key="joke_btn"):
        joke = service.next_joke()
    if joke is None:
        st.warning("Every joke source is down right now. Try again later.")
        return
    with st.container(border=True):
        if joke.type == "single":
            st.subheader(joke.joke)
        else:
            st.subheader(joke.setup)
            st.markdown(f"**{joke.delivery}**")
        st.caption(f"{joke.category} · {joke.source}")


def render_sports(service: DataService):
    st.header("⚽ Sports")
    tab_matches, tab_results = st.tabs(["Matches", "Leagues & Results"])

    with tab_matches:
        try:
            categories = service.get_sport_categories()
        except Exception as e:
            st.error(f"Could not load sports: {e}")
            return
        if not categories:
            st.info("No sports available.")
            return

        category = st.selectbox(
            "Sport", [c.id for c in categories],
            format_func=lambda cid: next(c.name for c in categories if c.id == cid),
            key="sports_category",
        )
        try:
            matches = service.get_matches(category)
        except Exception as e:
            st.error(f"Could not load matches: {e}")
            matches = []

        for i, match in enumerate(matches):
            if not isinstance(match, dict):
                continue
            title = match.get("title") or f"{match.get('home', '?')} vs {match.get('away', '?')}"
            with st.expander(title):
                st.json(match)
                favorite_button(
                    service,
                    Favorite.create(id=f"sports-{category}-{match.get('id', i)}", type="sports",
                                    title=title, data={"category": category, "id": match.get("id")}),
                    key=f"fav_match_{i}",
                )

    with tab_results:
        kind = st.selectbox("Show", SPORTS_RESULT_KINDS, key="sports_kind")
        league = ""
        if kind in ("tables", "scores"):
            league = st.text_input("League code", placeholder='e.g. "PL", "NBA"', key="sports_league")
        if st.button("Load", key="sports_results_btn"):
            try:
                st.json(service.get_results(kind, league or None))
            except Exception as e:
                st.error(str(e))


def render_favorites(service: DataService):
    st.header("⭐ Favorites")
    favorites = load_favorites(service.cache.storage)
    if not favorites:
        st.info("Nothing pinned yet. Use ☆ on countries, articles, coins or matches.")
        return

    for fav_type in FAVORITE_TYPES:
        items = [f for f in favorites if f.type == fav_type]
        if not items:
            continue
        st.subheader(fav_type.title())
        for fav in items:
            c1, c2 = st.columns([4, 1])
            c1.markdown(f"**{fav.title}**  \n_added {fav.added_at[:16].replace('T', ' ')}_")
            if c2.button("Remove", key=f"rm_{fav.id}"):
                remove_favorite(service.cache.storage, fav.id)
                st.rerun()


def render_cache_panel(service: DataService):
    st.header("🗄️ Cache")
    storage = service.cache.storage
    used = storage.used_bytes()
    st.progress(min(used / storage.quota_bytes, 1.0),
                text=f"{used / 1024:,.1f} KB of {storage.quota_bytes / 1024:,.0f} KB used")

    stats = service.cache.stats()
    rows = [{
        "Namespace": ns,
        "Entries": s.entries,
        "Size (KB)": round(s.bytes / 1024, 1),
        "Expired": s.expired,
    } for ns, s in stats.items()]
    st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)

    col1, col2 = st.columns([2, 1])
    with col1:
        namespace = st.selectbox("Namespace", CACHE_NAMESPACES, key="cache_ns")
        if st.button(f"Clear {namespace}", key="cache_clear_ns"):
            removed = service.refresh(namespace)
            st.success(f"Removed {removed} entries from {namespace}.")
    with col2:
        if st.button("Clear all", key="cache_clear_all", type="primary"):
            removed = service.refresh()
            st.success(f"Removed {removed} cache entries.")
        if st.button("Sweep expired", key="cache_sweep"):
            removed = service.cache.clear_expired()
            st.success(f"Removed {removed} expired entries.")


def main():
    service = get_service()

    with st.sidebar:
        st.title("🌍 OpenData Canvas")
        page = st.radio("Navigate", PAGES, key="navigation_radio", label_visibility="collapsed")
        st.session_state.current_page = page

    renderers = {
        "🏠 Home": render_home,
        "🌍 Countries": render_countries,
        "⛅ Weather": render_weather,
        "📰 News": render_news,
        "💰 Crypto": render_crypto,
        "🖼️ Images": render_images,
        "😂 Fun": render_fun,
        "⚽ Sports": render_sports,
        "⭐ Favorites": render_favorites,
        "🗄️ Cache": render_cache_panel,
    }
    renderers[page](service)


if __name__ == "__main__":
    main()
