from pushnote.main import cli

cli()
