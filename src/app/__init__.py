"""App — coração do sistema: orquestração, casos de uso e infraestrutura.

Subpastas:
- bootstrap/: composition root (factories, inicialização, wiring)
- use_cases/: casos de uso expostos para a camada HTTP
- services/: serviços de aplicação (tokens, sync, iCalendar)
- domain/: modelos de agendamento e integração
- infra/: implementações concretas de IO (Google, Firestore, Redis)
- protocols/: contratos/interfaces
- observability/: logs estruturados, correlation_id, métricas

Padrão: app executa; api adapta; fsm governa; utils apoia.
"""
