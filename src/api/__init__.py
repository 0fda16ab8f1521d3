"""API — camada de borda HTTP.

Responsabilidades:
- Receber requests do frontend da clínica e o callback OAuth
- Validar parâmetros de entrada
- Traduzir erros do domínio para status HTTP

Subpastas:
- routes/: endpoints HTTP (calendário, health)

NÃO PODE conter: FSM, regras de sincronização, acesso direto a stores.
"""
