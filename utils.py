# utils.py

import os
import logging
import matplotlib.pyplot as plt
import base64
from io import BytesIO
from config import EXTRA_DIRS


def create_directories(directories=None):
    """Create output directories if they don't exist."""
    for directory in directories or EXTRA_DIRS:
        if not os.path.exists(directory):
            os.makedirs(directory)
            logging.info(f"Created directory: {directory}")


def save_plot(fig, filename, plot_dir):
    """Save a Matplotlib figure as PNG and return its path."""
    os.makedirs(plot_dir, exist_ok=True)
    file_path = os.path.join(plot_dir, f"{filename}.png")
    fig.savefig(file_path, dpi=150, bbox_inches='tight')
    logging.info(f"Plot saved: {file_path}")
    return file_path


def save_plotly_fig(fig, filename, plot_dir):
    """Save Plotly figure to an HTML file."""
    os.makedirs(plot_dir, exist_ok=True)
    file_path = os.path.join(plot_dir, f"{filename}.html")
    fig.write_html(file_path, include_plotlyjs='cdn')
    logging.info(f"Plotly figure saved: {file_path}")
    return file_path


def save_dataframe_csv(df, plot_dir, filename):
    os.makedirs(plot_dir, exist_ok=True)
    path = os.path.join(plot_dir, filename)
    df.to_csv(path, index=False)
    logging.info(f"Saved CSV => {path}")
    return path


def encode_plot_to_base64(fig):
    """Encode Matplotlib figure to base64 string and close it."""
    img_buf = BytesIO()
    fig.savefig(img_buf, format='png', dpi=150, bbox_inches='tight')
    img_buf.seek(0)
    img_data = base64.b64encode(img_buf.getvalue()).decode()
    plt.close(fig)
    return img_data
