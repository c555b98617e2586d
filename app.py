"""
GreenCart Logistics - Operations Dashboard
======================================

Dashboard for running delivery simulations and reviewing delivery KPIs.

Features:
- Simulation parameters in the sidebar (drivers, hours, start time)
- KPI cards for the latest simulation
- Per-driver performance and per-order result tables
- Historical KPIs with trends over 24h / 7d / 30d
- Status, fuel cost and daily performance charts

Run:
    streamlit run app.py
"""

import os
import sys
from datetime import datetime, time
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
import streamlit as st

# Ensure the package is importable when run from a checkout
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from greencart import config
from greencart.dashboard import calculate_chart_data, calculate_dashboard_kpis
from greencart.exceptions import GreenCartError, PreconditionError, ValidationError
from greencart.simulation import Simulation, default_service

# =============================================================================
# PAGE CONFIG
# =============================================================================

st.set_page_config(
    page_title="GreenCart Logistics",
    page_icon="🚚",
    layout="wide",
    initial_sidebar_state="expanded"
)

# =============================================================================
# CUSTOM STYLING
# =============================================================================

st.markdown("""
<style>
    .kpi-card {
        background: linear-gradient(135deg, #11998e 0%, #38ef7d 100%);
        border-radius: 16px;
        padding: 1.5rem;
        color: white;
        text-align: center;
        box-shadow: 0 10px 40px rgba(17, 153, 142, 0.3);
    }

    .kpi-card.orange {
        background: linear-gradient(135deg, #f093fb 0%, #f5576c 100%);
        box-shadow: 0 10px 40px rgba(245, 87, 108, 0.3);
    }

    .kpi-value {
        font-size: 2.2rem;
        font-weight: 800;
        margin: 0.5rem 0;
    }

    .kpi-label {
        font-size: 0.9rem;
        opacity: 0.9;
        text-transform: uppercase;
        letter-spacing: 1px;
    }

    .section-header {
        font-size: 1.5rem;
        font-weight: 700;
        margin: 2rem 0 1rem 0;
        padding-bottom: 0.5rem;
        border-bottom: 3px solid #11998e;
    }

    #MainMenu {visibility: hidden;}
    footer {visibility: hidden;}
</style>
""", unsafe_allow_html=True)

# =============================================================================
# DATA LOADING
# =============================================================================

DATA_DIR = "data"


@st.cache_data(show_spinner=False)
def load_scenario(data_dir: str) -> Tuple[list, dict, list]:
    """Load and cache the CSV scenario."""
    return Simulation.load_data(
        os.path.join(data_dir, "drivers.csv"),
        os.path.join(data_dir, "routes.csv"),
        os.path.join(data_dir, "orders.csv"),
    )


# =============================================================================
# SIDEBAR
# =============================================================================

def render_sidebar() -> Optional[Dict[str, Any]]:
    """Render the simulation parameters. Returns them when Run is clicked."""
    st.sidebar.markdown("## ⚙️ Simulation")
    st.sidebar.markdown("---")

    number_of_drivers = st.sidebar.slider(
        "Number of Drivers",
        min_value=config.MIN_DRIVERS,
        max_value=config.MAX_DRIVERS,
        value=config.DEFAULT_NUMBER_OF_DRIVERS,
        help="Active drivers are picked least-worked first, then by rating"
    )

    max_hours = st.sidebar.slider(
        "Max Hours per Driver",
        min_value=int(config.MIN_HOURS_PER_DRIVER),
        max_value=int(config.MAX_HOURS_PER_DRIVER),
        value=int(config.DEFAULT_MAX_HOURS_PER_DRIVER),
        help="No driver is assigned work past this many hours in total"
    )

    start_date = st.sidebar.date_input("Start Date", value=datetime(2025, 1, 15).date())
    start_clock = st.sidebar.time_input("Start Time", value=time(9, 0))

    st.sidebar.markdown("---")
    time_range = st.sidebar.selectbox(
        "KPI Window",
        options=list(config.TIME_RANGES_HOURS.keys()),
        index=list(config.TIME_RANGES_HOURS.keys()).index(config.DEFAULT_TIME_RANGE),
    )
    st.session_state["time_range"] = time_range

    st.sidebar.markdown("---")
    if st.sidebar.button("🚀 Run Simulation", use_container_width=True):
        return {
            "number_of_drivers": number_of_drivers,
            "max_hours_per_driver": float(max_hours),
            "start_time": datetime.combine(start_date, start_clock),
        }
    return None


# =============================================================================
# KPI DISPLAY
# =============================================================================

def kpi_card(column, label: str, value: Any, style: str = "") -> None:
    with column:
        st.markdown(f"""
        <div class="kpi-card {style}">
            <div class="kpi-label">{label}</div>
            <div class="kpi-value">{value}</div>
        </div>
        """, unsafe_allow_html=True)


def render_simulation_kpis(results: Dict[str, Any]) -> None:
    """Render the KPI cards for one simulation result."""
    col1, col2, col3, col4 = st.columns(4)
    kpi_card(col1, "Total Profit", f"Rs {results['totalProfit']:,}")
    kpi_card(col2, "Efficiency Score", f"{results['efficiencyScore']:.2f}")
    kpi_card(col3, "On-time / Late", f"{results['onTimeDeliveries']} / {results['lateDeliveries']}")
    kpi_card(col4, "Drivers Used", results["driversUsed"], "orange")


def render_tables(results: Dict[str, Any]) -> None:
    """Driver performance and order results as dataframes."""
    st.markdown('<div class="section-header">👷 Driver Performance</div>', unsafe_allow_html=True)
    performance: List[Dict[str, Any]] = results["driverPerformance"]
    if performance:
        st.dataframe(pd.DataFrame(performance), use_container_width=True, hide_index=True)
    else:
        st.info("No drivers were assigned any orders.")

    st.markdown('<div class="section-header">📦 Order Results</div>', unsafe_allow_html=True)
    orders_df = pd.DataFrame(results["orderResults"])
    if not orders_df.empty:
        st.dataframe(orders_df, use_container_width=True, hide_index=True)

        st.markdown("**Profit by driver**")
        by_driver = orders_df.groupby("driverName")["profit"].sum().sort_values(ascending=False)
        st.bar_chart(by_driver)


def render_history(orders: list, routes: dict, now: datetime) -> None:
    """Historical KPIs computed from the order records."""
    st.markdown('<div class="section-header">📈 Delivery KPIs</div>', unsafe_allow_html=True)
    data = calculate_dashboard_kpis(orders, routes, now=now,
                                    time_range=st.session_state.get("time_range", "7d"))

    cols = st.columns(len(data["kpis"]))
    for col, kpi in zip(cols, data["kpis"].values()):
        with col:
            st.metric(kpi["label"], kpi["value"], kpi["trend"])

    st.dataframe(pd.DataFrame([data["summary"]]), use_container_width=True, hide_index=True)


def render_charts(orders: list, routes: dict, now: datetime) -> None:
    """Status breakdown, fuel cost by route and daily performance."""
    charts = calculate_chart_data(orders, routes, now=now,
                                  time_range=st.session_state.get("time_range", "7d"))

    col1, col2 = st.columns(2)
    with col1:
        st.markdown("**Delivery status**")
        if charts["deliveryStatus"]:
            status_df = pd.DataFrame(charts["deliveryStatus"]).set_index("name")
            st.bar_chart(status_df["value"])
        else:
            st.info("No orders in this window.")

    with col2:
        st.markdown("**Fuel cost by route**")
        if charts["fuelCosts"]:
            fuel_df = pd.DataFrame(charts["fuelCosts"]).set_index("route")
            st.bar_chart(fuel_df["cost"])
        else:
            st.info("No delivered orders in this window.")

    st.markdown("**Daily performance**")
    daily_df = pd.DataFrame(charts["dailyPerformance"])
    if not daily_df.empty:
        daily_df = daily_df.set_index("date")
        st.line_chart(daily_df[["delivered", "late"]])
        st.line_chart(daily_df["revenue"])


# =============================================================================
# MAIN APPLICATION
# =============================================================================

def main():
    """Main application entry point."""
    st.markdown("""
    <div style="text-align: center; padding: 1rem 0 2rem 0;">
        <h1 style="font-size: 2.8rem; font-weight: 800;">GreenCart Logistics</h1>
        <p style="font-size: 1.1rem; color: #666;">Delivery Assignment Simulation</p>
    </div>
    """, unsafe_allow_html=True)

    try:
        drivers, routes, orders = load_scenario(DATA_DIR)
    except (FileNotFoundError, ValueError) as e:
        st.error(f"Failed to load data: {e}")
        return

    params = render_sidebar()

    if params is not None:
        try:
            with st.spinner("Running simulation..."):
                default_service.run_simulation(drivers, orders, routes=routes, **params)
            st.success("Simulation complete!")
        except (ValidationError, PreconditionError) as e:
            st.warning(str(e))
        except GreenCartError as e:
            st.error(f"Simulation failed: {e}")

    status = default_service.get_status()
    results = status["lastResults"]

    if results is None:
        st.info("👈 Set the parameters in the sidebar and click **Run Simulation**.")
    else:
        render_simulation_kpis(results)
        st.caption(f"Last run: {results['timestamp']}")
        render_tables(results)

    now = params["start_time"] if params else datetime(2025, 1, 15, 9, 0)
    render_history(orders, routes, now)
    render_charts(orders, routes, now)

    st.markdown("---")
    st.markdown("""
    <div style="text-align: center; color: #888; padding: 1rem;">
        GreenCart Logistics | Operations Dashboard
    </div>
    """, unsafe_allow_html=True)


if __name__ == "__main__":
    main()
