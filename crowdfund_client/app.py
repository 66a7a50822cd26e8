import logging

from flask import (Blueprint, Flask, current_app, flash, jsonify, redirect,
                   render_template, request, url_for)
from web3 import Web3

from crowdfund_client import config
from crowdfund_client.errors import CrowdfundError
from crowdfund_client.logger import setup_logging
from crowdfund_client.runtime import DappRuntime

logger = logging.getLogger(__name__)

bp = Blueprint('dapp', __name__)


def get_runtime():
    return current_app.extensions['crowdfund']


def shorten_hex(value):
    if not value:
        return ''
    return value[:6] + '...' + value[-4:]


def ether(wei):
    return "{:.4f}".format(float(Web3.from_wei(wei, 'ether')))


# --- 1. CONTEXT PROCESSOR ---
@bp.app_context_processor
def inject_blockchain_status():
    runtime = get_runtime()
    account = runtime.session.account
    try:
        status = runtime.call(runtime.gateway.chain_status(account))
    except CrowdfundError as e:
        logger.warning(f"Chain status unavailable: {e.message}")
        status = {'connected': False, 'user_balance': 'Err', 'gas_price': '0', 'block_number': '0'}
    return dict(
        bc_stat=status,
        account=account,
        busy=runtime.busy.active,
        alert_dismiss_ms=config.ALERT_DISMISS_SECONDS * 1000,
    )


# --- 2. PROJECT LIST ---

@bp.route('/')
def index():
    runtime = get_runtime()
    for alert in runtime.drain_alerts():
        flash(alert.message, alert.level)
    try:
        wallet_accounts = runtime.call(runtime.gateway.request_accounts())
    except CrowdfundError:
        wallet_accounts = []
    return render_template(
        'index.html',
        cards=runtime.board.cards,
        wallet_accounts=wallet_accounts,
        prefill_project_id=request.args.get('project_id', ''),
    )


@bp.route('/refresh', methods=['POST'])
def refresh():
    runtime = get_runtime()
    runtime.call(runtime.board.refresh(runtime.session.context))
    return redirect(url_for('dapp.index'))


@bp.route('/api/state')
def api_state():
    return jsonify(get_runtime().state())


# --- 3. WALLET SESSION ---

@bp.route('/connect', methods=['POST'])
def connect():
    runtime = get_runtime()
    runtime.call(runtime.session.connect())
    return redirect(url_for('dapp.index'))


@bp.route('/logout', methods=['POST'])
def logout():
    runtime = get_runtime()
    runtime.call(runtime.session.logout())
    return redirect(url_for('dapp.index'))


@bp.route('/account', methods=['POST'])
def switch_account():
    account = request.form.get('account', '')
    if not Web3.is_address(account):
        flash('Invalid Ethereum account address!', 'warning')
        return redirect(url_for('dapp.index'))
    get_runtime().switch_account(Web3.to_checksum_address(account))
    return redirect(url_for('dapp.index'))


# --- 4. ACTIONS ---

@bp.route('/projects', methods=['POST'])
def create_project():
    runtime = get_runtime()
    runtime.call(runtime.dispatcher.create_project(
        request.form.get('title'),
        request.form.get('description'),
        request.form.get('goal'),
        request.form.get('duration'),
        request.form.get('goal_unit', 'wei'),
    ))
    return redirect(url_for('dapp.index'))


@bp.route('/projects/<int:id>/contribute')
def contribute_to(id):
    return redirect(url_for('dapp.index', project_id=id, _anchor='contribute'))


@bp.route('/contribute', methods=['POST'])
def contribute():
    runtime = get_runtime()
    runtime.call(runtime.dispatcher.contribute(
        request.form.get('project_id'),
        request.form.get('amount'),
        request.form.get('unit', 'wei'),
    ))
    return redirect(url_for('dapp.index'))


@bp.route('/projects/<int:id>/withdraw', methods=['POST'])
def withdraw_funds(id):
    runtime = get_runtime()
    runtime.call(runtime.dispatcher.withdraw_funds(id))
    return redirect(url_for('dapp.index'))


@bp.route('/projects/<int:id>/refund', methods=['POST'])
def refund(id):
    runtime = get_runtime()
    runtime.call(runtime.dispatcher.refund(id))
    return redirect(url_for('dapp.index'))


@bp.app_errorhandler(404)
def page_not_found(e):
    return render_template('404.html'), 404


def create_app(runtime=None):
    app = Flask(__name__)
    app.secret_key = config.FLASK_SECRET_KEY
    if runtime is None:
        runtime = DappRuntime().start()
    app.extensions['crowdfund'] = runtime
    app.add_template_filter(shorten_hex)
    app.add_template_filter(ether)
    app.register_blueprint(bp)
    return app


def main():
    setup_logging()
    app = create_app()
    app.run(host=config.HOST, port=config.PORT, debug=False, threaded=True)


if __name__ == '__main__':
    main()
