from deploy_relay.main import run

run()
