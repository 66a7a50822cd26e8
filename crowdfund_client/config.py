import os

from dotenv import load_dotenv

from crowdfund_client.contract_data import CONTRACT_ADDRESS as DEFAULT_CONTRACT_ADDRESS

load_dotenv()

# --- NODE / WALLET ---
# Ganache GUI listens on 7545, ganache-cli / anvil on 8545
RPC_URL = os.getenv("CROWDFUND_RPC_URL", "http://127.0.0.1:7545")
CONTRACT_ADDRESS = os.getenv("CROWDFUND_CONTRACT_ADDRESS", DEFAULT_CONTRACT_ADDRESS)

# seconds to wait for a mined receipt before reporting the call as failed
RECEIPT_TIMEOUT = float(os.getenv("CROWDFUND_RECEIPT_TIMEOUT", "120"))

# --- UI ---
ALERT_DISMISS_SECONDS = 5
FLASK_SECRET_KEY = os.getenv("FLASK_SECRET_KEY", "crowdfund-client-dev")
HOST = os.getenv("CROWDFUND_HOST", "127.0.0.1")
PORT = int(os.getenv("CROWDFUND_PORT", "5000"))

LOG_LEVEL = os.getenv("CROWDFUND_LOG_LEVEL", "INFO")
