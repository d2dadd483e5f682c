from tradedesk import create_app

app = create_app()
