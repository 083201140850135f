from billpay.cli import run

run()
